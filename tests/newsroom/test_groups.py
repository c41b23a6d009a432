from __future__ import annotations

from datetime import datetime, timezone

import pytest

from newsroom.errors import ValidationError
from newsroom.layout.groups import (
    CURATED_GROUPS,
    POSITION_LABELS,
    normalize_article_ids,
    resolve_curated_group,
    resolve_group_placements,
    validate_group_payload,
)
from newsroom.models import CuratedGroupConfig, CuratedGroupType

NOW = datetime(2025, 6, 2, tzinfo=timezone.utc)


def _config(group: CuratedGroupType, ids: list[str], position: str = "after_top_stories") -> CuratedGroupConfig:
    return CuratedGroupConfig(group=group, position=position, article_ids=ids, updated_at=NOW)


def test_required_counts_are_fixed():
    assert CURATED_GROUPS[CuratedGroupType.CLUB].required_count == 5
    assert CURATED_GROUPS[CuratedGroupType.SPOTLIGHT].required_count == 3
    assert CURATED_GROUPS[CuratedGroupType.DUO].required_count == 2
    assert POSITION_LABELS["after_world_section"] == "After World Section"


def test_normalize_article_ids_trims_and_dedupes():
    assert normalize_article_ids([" a ", "b", "a", "", 3, None, "c"]) == ["a", "b", "c"]
    assert normalize_article_ids("a,b") == []


def test_validate_group_payload_accepts_exact_count_after_dedupe():
    position, ids = validate_group_payload(
        CuratedGroupType.DUO, "after_india_section", ["x", " y", "x"]
    )
    assert position == "after_india_section"
    assert ids == ["x", "y"]


@pytest.mark.parametrize(
    "group, position, ids, message",
    [
        (CuratedGroupType.CLUB, "after_insta_strip", ["a", "b", "c", "d", "e"], "Invalid position"),
        (CuratedGroupType.CLUB, None, ["a", "b", "c", "d", "e"], "Invalid position"),
        (CuratedGroupType.SPOTLIGHT, "after_top_stories", ["a", "b"], "Select exactly 3 articles"),
        (CuratedGroupType.DUO, "after_top_stories", ["a", "a"], "Select exactly 2 articles"),
    ],
)
def test_validate_group_payload_rejects(group, position, ids, message):
    with pytest.raises(ValidationError) as excinfo:
        validate_group_payload(group, position, ids)
    assert excinfo.value.detail == message


def test_validate_group_payload_enforces_cross_group_exclusivity():
    club = _config(CuratedGroupType.CLUB, ["a", "b", "c", "d", "e"])
    with pytest.raises(ValidationError) as excinfo:
        validate_group_payload(CuratedGroupType.DUO, "after_top_stories", ["z", "c"], other_configs=[club])
    assert "Club Articles" in excinfo.value.detail

    # The group's own stored config never conflicts with its replacement.
    own = _config(CuratedGroupType.DUO, ["z", "c"])
    assert validate_group_payload(
        CuratedGroupType.DUO, "after_top_stories", ["z", "c"], other_configs=[own]
    )[1] == ["z", "c"]


def test_resolve_curated_group_preserves_config_order(make_article):
    published = [make_article(i, minutes=n) for n, i in enumerate("abc")]
    config = _config(CuratedGroupType.SPOTLIGHT, ["c", "a", "b"])

    resolved = resolve_curated_group(config, published)

    assert [a.id for a in resolved] == ["c", "a", "b"]


def test_resolve_curated_group_is_all_or_nothing(make_article):
    published = [make_article(i) for i in "abcd"]
    club = _config(CuratedGroupType.CLUB, ["a", "b", "c", "d", "deleted"])

    assert resolve_curated_group(club, published) is None
    assert resolve_curated_group(None, published) is None


def test_resolve_curated_group_ignores_drafts_and_bad_counts(make_article):
    published = [make_article("a"), make_article("b", status="draft")]
    duo = _config(CuratedGroupType.DUO, ["a", "b"])
    assert resolve_curated_group(duo, published) is None

    corrupted = CuratedGroupConfig.model_construct(
        group=CuratedGroupType.DUO, position="after_top_stories", article_ids=["a"], updated_at=NOW
    )
    assert resolve_curated_group(corrupted, [make_article("a")]) is None


def test_resolve_group_placements_covers_every_group(make_article):
    published = [make_article(i) for i in "ab"]
    placements = resolve_group_placements(
        {CuratedGroupType.DUO: _config(CuratedGroupType.DUO, ["a", "b"], "after_world_section")},
        published,
    )

    assert set(placements) == set(CuratedGroupType)
    assert placements[CuratedGroupType.CLUB] is None
    duo = placements[CuratedGroupType.DUO]
    assert duo.position == "after_world_section"
    assert [a.id for a in duo.articles] == ["a", "b"]
