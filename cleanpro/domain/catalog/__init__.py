"""Catalog domain - cleaning services and products"""
