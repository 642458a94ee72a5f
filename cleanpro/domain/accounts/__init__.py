"""Accounts domain - customer and admin authentication, profiles and admin onboarding"""
