"""Tests for the tagging policy."""

import pytest

from maiass.config import PatchTagging
from maiass.core.pipeline import decide_tagging
from maiass.models import BumpKind, TaggingDecision

pytestmark = pytest.mark.unit


@pytest.mark.parametrize(
    ("kind", "force", "mode", "expected"),
    [
        (BumpKind.MINOR, False, PatchTagging.NONE, TaggingDecision(True, False)),
        (BumpKind.MAJOR, False, PatchTagging.ASK, TaggingDecision(True, False)),
        (BumpKind.PATCH, False, PatchTagging.ASK, TaggingDecision(False, True)),
        (BumpKind.PATCH, False, PatchTagging.ALL, TaggingDecision(True, False)),
        (BumpKind.PATCH, False, PatchTagging.NONE, TaggingDecision(False, False)),
        (BumpKind.PATCH, True, PatchTagging.NONE, TaggingDecision(True, False)),
        (BumpKind.PATCH, True, PatchTagging.ASK, TaggingDecision(True, False)),
    ],
)
def test_decide_tagging(
    kind: BumpKind, force: bool, mode: PatchTagging, expected: TaggingDecision
) -> None:
    assert decide_tagging(kind, force, mode) == expected


def test_only_patch_can_skip_tagging() -> None:
    for mode in PatchTagging:
        for kind in (BumpKind.MAJOR, BumpKind.MINOR):
            assert decide_tagging(kind, False, mode).should_tag
