"""Gallery domain - public media wall"""
