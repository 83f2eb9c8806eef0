"""
Configuration for Lambda handlers.

Configuration is read once at cold start from environment variables and
validated on boot. The DynamoDB table handle is built here and injected into
the ProfileStore; handlers never create clients per request.
"""

import os
from typing import Dict, Any

import boto3
from botocore.config import Config


REQUIRED_VARS = ['PROFILES_TABLE_NAME']

DEFAULTS = {
    'AWS_REGION': 'us-east-1',
    'METRICS_ENABLED': 'true',
    'DYNAMODB_TIMEOUT_SECONDS': '5',
}


def load_config() -> Dict[str, Any]:
    """
    Load and validate environment variables.

    Returns:
        Configuration dictionary with snake_case keys:
            - profiles_table_name: DynamoDB table holding every profile item
            - aws_region: Region of the table
            - dynamodb_endpoint_url: Endpoint override (DynamoDB Local), or None
            - metrics_enabled: Whether CloudWatch metrics are published
            - dynamodb_timeout_seconds: Connect and read timeout for DynamoDB calls

    Raises:
        ValueError: If a required variable is missing or a value is malformed
    """
    config: Dict[str, Any] = {}
    missing_vars = []

    for var in REQUIRED_VARS:
        value = os.environ.get(var)
        if not value:
            missing_vars.append(var)
        else:
            config[var.lower()] = value

    if missing_vars:
        raise ValueError(
            f"Missing required environment variables: {', '.join(missing_vars)}"
        )

    for var, default in DEFAULTS.items():
        config[var.lower()] = os.environ.get(var) or default

    config['dynamodb_endpoint_url'] = os.environ.get('DYNAMODB_ENDPOINT_URL') or None
    config['metrics_enabled'] = config['metrics_enabled'].strip().lower() in ('1', 'true', 'yes')

    try:
        config['dynamodb_timeout_seconds'] = float(config['dynamodb_timeout_seconds'])
    except ValueError:
        raise ValueError(
            f"DYNAMODB_TIMEOUT_SECONDS must be a number, got '{config['dynamodb_timeout_seconds']}'"
        )

    return config


def create_table(config: Dict[str, Any]) -> Any:
    """
    Build the boto3 Table handle for the profiles table.

    Args:
        config: Configuration returned by load_config

    Returns:
        boto3 DynamoDB Table resource
    """
    timeout = config['dynamodb_timeout_seconds']
    dynamodb = boto3.resource(
        'dynamodb',
        region_name=config['aws_region'],
        endpoint_url=config['dynamodb_endpoint_url'],
        config=Config(connect_timeout=timeout, read_timeout=timeout),
    )
    return dynamodb.Table(config['profiles_table_name'])
