from __future__ import annotations

import threading

import pytest

from newsroom.errors import ValidationError
from newsroom.layout.slots import (
    AFTER_INDIA_SECTION,
    AFTER_INSTA_STRIP,
    AFTER_TOP_STORIES,
    INDIA_SECTION_ORDER,
    SlotLocks,
    claimed_slots,
    has_slot_collision,
    hero_containers_at,
    normalize_placements,
    resolve_all_slots,
    resolve_slots,
)
from newsroom.models import HeroPlacement


def test_resolve_slots_maps_each_slot_to_one_article(make_article):
    a = make_article("a", placements={1: AFTER_TOP_STORIES})
    b = make_article("b", placements={1: AFTER_INSTA_STRIP, 2: AFTER_TOP_STORIES})
    c = make_article("c")

    slots = resolve_slots(1, [a, b, c])

    assert slots == {AFTER_TOP_STORIES: a, AFTER_INSTA_STRIP: b}
    assert resolve_slots(2, [a, b, c]) == {AFTER_TOP_STORIES: b}
    assert resolve_slots(3, [a, b, c]) == {}


def test_most_recently_saved_claimant_wins_regardless_of_input_order(make_article):
    older = make_article("x", minutes=0, updated_minutes=5, placements={1: AFTER_TOP_STORIES})
    newer = make_article("y", minutes=0, updated_minutes=10, placements={1: AFTER_TOP_STORIES})

    assert resolve_slots(1, [older, newer])[AFTER_TOP_STORIES].id == "y"
    assert resolve_slots(1, [newer, older])[AFTER_TOP_STORIES].id == "y"


def test_resolve_slots_rejects_unknown_container(make_article):
    with pytest.raises(ValidationError):
        resolve_slots(4, [make_article("a")])


def test_hero_containers_at_keeps_container_order(make_article):
    a = make_article("a", placements={3: AFTER_INDIA_SECTION})
    b = make_article("b", placements={1: AFTER_INDIA_SECTION})
    maps = resolve_all_slots([a, b])

    heroes = hero_containers_at(AFTER_INDIA_SECTION, maps)

    assert [(h.index, h.article.id) for h in heroes] == [(1, "b"), (3, "a")]
    assert hero_containers_at(AFTER_INSTA_STRIP, maps) == []


def test_hero_containers_at_follows_given_order(make_article):
    a = make_article("a", placements={1: AFTER_INDIA_SECTION})
    b = make_article("b", placements={2: AFTER_TOP_STORIES, 3: AFTER_INDIA_SECTION})
    c = make_article("c", placements={2: AFTER_INDIA_SECTION})
    maps = resolve_all_slots([a, b, c])

    heroes = hero_containers_at(AFTER_INDIA_SECTION, maps, INDIA_SECTION_ORDER)

    assert [(h.index, h.article.id) for h in heroes] == [(2, "c"), (3, "b"), (1, "a")]


def test_has_slot_collision_ignores_disabled_and_empty():
    assert has_slot_collision(
        [
            HeroPlacement(container=1, enabled=True, slot=AFTER_TOP_STORIES),
            HeroPlacement(container=2, enabled=True, slot=AFTER_TOP_STORIES),
        ]
    )
    assert not has_slot_collision(
        [
            HeroPlacement(container=1, enabled=True, slot=AFTER_TOP_STORIES),
            HeroPlacement(container=2, enabled=False, slot=AFTER_TOP_STORIES),
            HeroPlacement(container=3, enabled=True, slot=None),
        ]
    )
    assert not has_slot_collision([])


def test_normalize_placements_fills_all_containers_and_drops_disabled_slots():
    result = normalize_placements(
        [
            HeroPlacement(container=2, enabled=True, slot=AFTER_INSTA_STRIP),
            HeroPlacement(container=3, enabled=False, slot=AFTER_TOP_STORIES),
        ]
    )

    assert [(p.container, p.enabled, p.slot) for p in result] == [
        (1, False, None),
        (2, True, AFTER_INSTA_STRIP),
        (3, False, None),
    ]
    assert claimed_slots(result) == [(2, AFTER_INSTA_STRIP)]


@pytest.mark.parametrize(
    "placements, message",
    [
        (
            [HeroPlacement(container=1, enabled=True, slot=None)],
            "Please select placement for Main News Container.",
        ),
        (
            [
                HeroPlacement(container=1, enabled=True, slot=AFTER_TOP_STORIES),
                HeroPlacement(container=3, enabled=True, slot=AFTER_TOP_STORIES),
            ],
            "Placement conflict: choose different placements for Container 1/2/3.",
        ),
        (
            [
                HeroPlacement(container=2, enabled=False),
                HeroPlacement(container=2, enabled=True, slot=AFTER_TOP_STORIES),
            ],
            "Container 2 listed more than once.",
        ),
    ],
)
def test_normalize_placements_rejects_invalid_input(placements, message):
    with pytest.raises(ValidationError) as excinfo:
        normalize_placements(placements)
    assert excinfo.value.detail == message
    assert excinfo.value.status_code == 400


def test_normalize_placements_rejects_unknown_slot_name():
    bogus = HeroPlacement.model_construct(container=1, enabled=True, slot="after_world_section")
    with pytest.raises(ValidationError):
        normalize_placements([bogus])


def test_slot_locks_serialise_same_key():
    locks = SlotLocks()
    order: list[str] = []
    entered = threading.Event()
    release = threading.Event()

    def first():
        with locks.hold([(1, AFTER_TOP_STORIES)]):
            entered.set()
            release.wait(timeout=2)
            order.append("first")

    def second():
        entered.wait(timeout=2)
        with locks.hold([(1, AFTER_TOP_STORIES), (2, AFTER_INSTA_STRIP)]):
            order.append("second")

    t1 = threading.Thread(target=first)
    t2 = threading.Thread(target=second)
    t1.start()
    t2.start()
    entered.wait(timeout=2)
    release.set()
    t1.join(timeout=2)
    t2.join(timeout=2)

    assert order == ["first", "second"]
