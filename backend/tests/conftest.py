"""
Experts Router - Shared Test Fixtures
====================================
Sample CMS data and a fake Webflow client. No real API calls.

Sample directory:
    States:  Texas (R1, explicit slug), California (R2, slug from name)
    Cities:  Austin (state by id), Houston (state by name), Ghost (unknown state)
    Categories: Web Design (CAT1), Marketing (CAT2)
    Skills:  WordPress [CAT1], SEO [CAT1, CAT2], Figma [CAT1]
    Certifications: Google Ads [CAT2]
    Experts:
        E1  Texas / Austin   skills WordPress, SEO
        E2  Texas / Houston  skills SEO, cert Google Ads
        E3  Texas            cert Google Ads only
        E4  California       skills WordPress
"""

import sys
import os
import copy
import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from experts_router.core.route_generator import DirectoryData
from experts_router.services.webflow import CollectionIds, UpstreamFetchError, WebflowClient


def item(item_id, **fields):
    return {"id": item_id, "isArchived": False, "isDraft": False, "fieldData": fields}


STATES = [
    item("R1", name="Texas", slug="texas"),
    item("R2", name="California"),
]

CITIES = [
    item("C-AUS", name="Austin", state="R1"),
    item("C-HOU", name="Houston", state="texas"),
    item("C-GHO", name="Ghost Town", state="R9"),
]

CATEGORIES = [
    item("CAT1", name="Web Design"),
    item("CAT2", name="Marketing"),
]

SKILLS = [
    item("S1", name="WordPress", **{"expert-category": ["CAT1"]}),
    item("S2", name="SEO", **{"expert-category": ["CAT1", "CAT2"]}),
    item("S3", name="Figma", **{"expert-category": ["CAT1"]}),
]

CERTIFICATIONS = [
    item("CERT1", name="Google Ads", category=["CAT2"]),
]

EXPERTS = [
    item("E1", name="Ada", state="R1", city="C-AUS", certifications=[], **{"skills-2": ["S1", "S2"]}),
    item("E2", name="Ben", state="R1", city="C-HOU", certifications=["CERT1"], **{"skills-2": ["S2"]}),
    item("E3", name="Cy", state="R1", certifications=["CERT1"], **{"skills-2": []}),
    item("E4", name="Di", state="R2", certifications=[], **{"skills-2": ["S1"]}),
]

ARCHIVED_EXPERT = {
    "id": "E5", "isArchived": True,
    "fieldData": {"name": "Old", "state": "R2", "skills-2": ["S3"]},
}
HIDDEN_EXPERT = item("E6", name="Shy", state="R2", hidden=True, **{"skills-2": ["S3"]})
ARCHIVED_SKILL = {"id": "S9", "isArchived": False, "fieldData": {"name": "Flash", "isArchived": True}}

COLLECTION_IDS = CollectionIds(
    experts="col-experts",
    states="col-states",
    cities="col-cities",
    categories="col-categories",
    skills="col-skills",
    certifications="col-certs",
)


def raw_collections():
    """Collections as Webflow returns them (archived / hidden items included)."""
    return {
        "col-experts": copy.deepcopy(EXPERTS) + [copy.deepcopy(ARCHIVED_EXPERT), copy.deepcopy(HIDDEN_EXPERT)],
        "col-states": copy.deepcopy(STATES),
        "col-cities": copy.deepcopy(CITIES),
        "col-categories": copy.deepcopy(CATEGORIES),
        "col-skills": copy.deepcopy(SKILLS) + [copy.deepcopy(ARCHIVED_SKILL)],
        "col-certs": copy.deepcopy(CERTIFICATIONS),
    }


class FakeWebflowClient(WebflowClient):
    """WebflowClient serving in-memory collections and recording fetches."""

    def __init__(self, collections):
        super().__init__(api_token="test-token", page_delay=0)
        self.collections = collections
        self.calls = []
        self.failing = False

    def fetch_collection(self, collection_id):
        self.calls.append(collection_id)
        if self.failing:
            raise UpstreamFetchError(collection_id, 503, "Service Unavailable")
        return copy.deepcopy(self.collections.get(collection_id, []))


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start=1000.0):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def directory_data():
    return DirectoryData(
        states=copy.deepcopy(STATES),
        cities=copy.deepcopy(CITIES),
        categories=copy.deepcopy(CATEGORIES),
        skills=copy.deepcopy(SKILLS),
        certifications=copy.deepcopy(CERTIFICATIONS),
        experts=copy.deepcopy(EXPERTS),
    )


@pytest.fixture
def texas_data():
    """One state, one category, one skill, two experts (one without skills)."""
    return DirectoryData(
        states=[item("R1", name="Texas")],
        cities=[],
        categories=[item("C1", name="Web Design")],
        skills=[item("S1", name="WordPress", **{"expert-category": ["C1"]})],
        certifications=[],
        experts=[
            item("E1", state="R1", **{"skills-2": ["S1"]}),
            item("E2", state="R1", **{"skills-2": []}),
        ],
    )


@pytest.fixture
def fake_client():
    return FakeWebflowClient(raw_collections())


@pytest.fixture
def clock():
    return FakeClock()
