#!/usr/bin/env python3
"""
Package Lambda functions with the shared core.
This script copies events_shared into each Lambda function directory so
that every function ships as a self-contained asset.
Note: External dependencies (aioboto3, python-ulid) are provided via Lambda Layer.
"""
import shutil
import os

# Lambda function directories
LAMBDA_FUNCTIONS = [
    'lambda/accounts_create',
    'lambda/accounts_list_query',
    'lambda/events_create',
    'lambda/events_update',
    'lambda/events_delete',
    'lambda/events_list_query',
    'lambda/tags_list_query',
]

SHARED_DIR = 'lambda/events_shared'

IGNORE = shutil.ignore_patterns('__pycache__', '*.pyc', 'test_*.py', '.pytest_cache')


def package(func_dir: str) -> None:
    target_shared = os.path.join(func_dir, 'events_shared')
    
    # Remove existing copy if it exists
    if os.path.exists(target_shared):
        shutil.rmtree(target_shared)
        print(f"✓ Removed old events_shared from {func_dir}")
    
    shutil.copytree(SHARED_DIR, target_shared, ignore=IGNORE)
    print(f"✓ Copied events_shared to {func_dir}")


def main() -> None:
    print("Packaging Lambda functions with shared core...\n")
    
    for func_dir in LAMBDA_FUNCTIONS:
        package(func_dir)
    
    print("\n✅ All Lambda functions packaged successfully!")
    print("\nNote: External dependencies (aioboto3, python-ulid) are provided via Lambda Layer")


if __name__ == '__main__':
    main()
