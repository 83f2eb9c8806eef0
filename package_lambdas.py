#!/usr/bin/env python3
"""
Package Lambda functions with shared code.
This script copies profiles_shared into each Lambda source directory.
Note: External dependencies (boto3, python-dateutil) ship with the Lambda runtime.
"""
import shutil
import os

# Lambda source directories
lambda_functions = [
    'lambda/profiles_upsert',
    'lambda/profiles_get',
]

shared_dir = 'lambda/profiles_shared'

print("Packaging Lambda functions with shared code...\n")

for func_dir in lambda_functions:
    target_shared = os.path.join(func_dir, 'profiles_shared')

    # Remove existing profiles_shared if it exists
    if os.path.exists(target_shared):
        shutil.rmtree(target_shared)
        print(f"✓ Removed old profiles_shared from {func_dir}")

    shutil.copytree(shared_dir, target_shared, ignore=shutil.ignore_patterns('__pycache__', '*.pyc', 'test_*.py', '.pytest_cache'))
    print(f"✓ Copied profiles_shared to {func_dir}")

print("\n✅ All Lambda functions packaged successfully!")
print("Now deploy with: cd deployments && cdk deploy profiles-dev-stack")
