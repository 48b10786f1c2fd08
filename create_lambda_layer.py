#!/usr/bin/env python3
"""
Create Lambda Layer with the runtime dependencies of events_shared.
boto3 is already available in the Lambda runtime; aioboto3 pins its own
compatible aiobotocore/botocore, so those are installed into the layer too.
"""
import subprocess
import os
import shutil
import sys
from pathlib import Path

LAYER_DIR = 'lambda_layer/python'

REQUIREMENTS = [
    'aioboto3>=13.0',
    'python-ulid>=2.2',
]

# Clean up unnecessary files but keep dist-info for dependency tracking
PATTERNS_TO_REMOVE = [
    '__pycache__',
    '*.pyc',
    'bin',
]


def install() -> None:
    print(f"Installing {', '.join(REQUIREMENTS)} with dependencies...")
    result = subprocess.run(
        [
            sys.executable, '-m', 'pip', 'install',
            *REQUIREMENTS,
            '-t', LAYER_DIR,
            '--upgrade',
            '--no-cache-dir'
        ],
        capture_output=True,
        text=True
    )
    
    if result.returncode != 0:
        print("✗ Failed to install dependencies")
        print(f"Error: {result.stderr}")
        sys.exit(1)
    
    print("✓ Installed layer dependencies")


def clean() -> None:
    print("\nCleaning up unnecessary files...")
    for pattern in PATTERNS_TO_REMOVE:
        for item in Path(LAYER_DIR).rglob(pattern):
            if item.is_dir():
                shutil.rmtree(item)
            elif item.exists():
                item.unlink()
            print(f"  ✓ Removed {item.relative_to(LAYER_DIR)}")


def main() -> None:
    os.makedirs(LAYER_DIR, exist_ok=True)
    print(f"Creating Lambda Layer in {LAYER_DIR}\n")
    
    install()
    
    print("\nInstalled packages:")
    for item in sorted(os.listdir(LAYER_DIR)):
        if os.path.isdir(os.path.join(LAYER_DIR, item)) and not item.startswith('__'):
            print(f"  - {item}")
    
    clean()
    
    print("\n✅ Lambda Layer created successfully!")


if __name__ == '__main__':
    main()
