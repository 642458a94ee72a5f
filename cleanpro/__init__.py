"""CleanPro storefront and back-office API"""
