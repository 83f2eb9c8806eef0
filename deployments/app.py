#!/usr/bin/env python3
"""
CDK Application Entry Point.

Usage:
    # Copy the shared package into the Lambda sources first
    python ../package_lambdas.py

    # Synthesize CloudFormation templates
    cdk synth

    # Deploy to development environment
    cdk deploy profiles-dev-stack

Environment Configuration:
    - CDK_DEFAULT_ACCOUNT: AWS account ID
    - CDK_DEFAULT_REGION: AWS region
    - PROFILES_METRICS_ENABLED: 'false' turns off CloudWatch custom metrics
"""

import os
from aws_cdk import App, Environment

from profiles.profiles_stack import ProfileStoreStack


app = App()

account = os.environ.get('CDK_DEFAULT_ACCOUNT')
region = os.environ.get('CDK_DEFAULT_REGION')

env = None
if account and region:
    env = Environment(account=account, region=region)

metrics_enabled = os.environ.get('PROFILES_METRICS_ENABLED', 'true').lower() != 'false'

# Development Stack
dev_stack = ProfileStoreStack(
    app,
    'profiles-dev-stack',
    env_name='dev',
    metrics_enabled=metrics_enabled,
    env=env,
    description='Personalisation Profile Store - Development Environment',
)

# Production Stack
# prod_stack = ProfileStoreStack(
#     app,
#     'profiles-prod-stack',
#     env_name='prod',
#     env=env,
#     description='Personalisation Profile Store - Production Environment',
# )

app.synth()
