"""
Test setup shared by every test module.

Lambda sources are laid out the way they are deployed (handler modules at the
top of each source directory, profiles_shared beside them), so their
directories are put on sys.path. Handlers read their configuration at import
time, so the environment is prepared here before any test module imports one.
"""

import os
import sys

ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))

for path in ('lambda', 'lambda/profiles_upsert', 'lambda/profiles_get'):
    sys.path.insert(0, os.path.join(ROOT, path))

os.environ.setdefault('PROFILES_TABLE_NAME', 'profiles-test')
os.environ.setdefault('AWS_REGION', 'us-east-1')
os.environ.setdefault('AWS_DEFAULT_REGION', 'us-east-1')
os.environ['METRICS_ENABLED'] = 'false'
