"""Personalisation Profile Store CDK constructs."""

from .table_construct import ProfileStoreTableConstruct
from .lambda_constructs import ProfileStoreLambdasConstruct
from .api_construct import ProfileStoreApiConstruct

__all__ = [
    "ProfileStoreTableConstruct",
    "ProfileStoreLambdasConstruct",
    "ProfileStoreApiConstruct",
]
