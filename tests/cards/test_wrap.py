from __future__ import annotations

from cards.wrap import wrap_title


def test_exactly_eighteen_characters_stays_on_one_line():
    title = "abcdefgh ijklmnopq"  # 18 characters
    assert wrap_title(title) == ["ABCDEFGH IJKLMNOPQ"]


def test_long_first_word_sits_alone_without_splitting():
    lines = wrap_title("Supercalifragilisticexpialidocious news today")
    assert lines == ["SUPERCALIFRAGILISTICEXPIALIDOCIOUS", "NEWS TODAY"]


def test_later_lines_hold_twenty_four_characters():
    lines = wrap_title("aaaa bbbb cccc dddd eeee ffff gggg hhhh")
    assert lines == ["AAAA BBBB CCCC", "DDDD EEEE FFFF GGGG HHHH"]
    assert all(len(line) <= 24 for line in lines[1:])


def test_excess_words_are_dropped_after_four_lines():
    title = " ".join(["wordy"] * 30)
    lines = wrap_title(title)

    assert len(lines) == 4
    assert lines[0] == "WORDY WORDY WORDY"
    assert lines[1] == "WORDY WORDY WORDY WORDY"
    assert sum(len(line.split()) for line in lines) < 30


def test_whitespace_is_collapsed_and_empty_title_gives_no_lines():
    assert wrap_title("  breaking\n\tnews  ") == ["BREAKING NEWS"]
    assert wrap_title("   ") == []


def test_max_lines_is_configurable():
    assert wrap_title("one two three four five six seven eight nine ten eleven", max_lines=1) == [
        "ONE TWO THREE FOUR"
    ]
