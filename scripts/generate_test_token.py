#!/usr/bin/env python3
"""Generate test JWT tokens for API smoke testing."""
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from candilib.api.deps import issue_smoke_token
from candilib.core.auth import Role

candidat_id = sys.argv[1] if len(sys.argv) > 1 else "candidat-test"

# Candidate token for /candidat routes
candidat_token = issue_smoke_token(candidat_id, role=Role.CANDIDAT)
print(f"Candidat Token ({candidat_id}):\n{candidat_token}\n")

# Staff token for /admin routes
staff_token = issue_smoke_token("repartiteur-test", role=Role.REPARTITEUR, departements=["93"])
print(f"Repartiteur Token:\n{staff_token}")
