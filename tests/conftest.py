from __future__ import annotations

import os
import tempfile
from pathlib import Path

_TEST_DATA_DIR = Path(tempfile.mkdtemp(prefix="jobfilter-tests-"))
os.environ["DATABASE_URL"] = f"sqlite:///{_TEST_DATA_DIR / 'jobfilter-test.db'}"
os.environ["DATA_DIR"] = str(_TEST_DATA_DIR)
os.environ["APP_ENV"] = "test"

import pytest  # noqa: E402

from jobfilter.db.base import Base  # noqa: E402
from jobfilter.db import models  # noqa: E402,F401
from jobfilter.db.session import engine  # noqa: E402


@pytest.fixture(autouse=True)
def reset_db() -> None:
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


SAMPLE_RESUME = """Jordan Rivera
Austin, TX | jordan@example.com

EXPERIENCE
Acme Inc
Growth Lead, Jan 2022 - Present
- Grew signups 40% via lifecycle email
- Owned HubSpot instance

Globex Corp
Marketing Manager, 2019 - 2021
- Launched referral program that added 5,000 users
- Managed agency partners across paid social

SKILLS
SEO, Lifecycle Marketing, Salesforce
"""


@pytest.fixture
def sample_resume() -> str:
    return SAMPLE_RESUME
