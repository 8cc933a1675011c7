#!/usr/bin/env python3
"""Print signed access tokens for manual API testing, one per role."""

import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from hirehub.api.deps import issue_smoke_token
from hirehub.core.auth import Role

for role in Role:
    token = issue_smoke_token(f"{role.value}-test", role=role, email=f"{role.value}@example.com")
    print(f"{role.value.title()} Token:\n{token}\n")
