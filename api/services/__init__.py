"""
API Services - shape engine results into API response models
"""
