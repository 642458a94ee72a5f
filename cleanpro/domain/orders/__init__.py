"""Orders domain - cart checkout with stock control"""
