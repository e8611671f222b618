"""Word box -> text block reconstruction."""

from locscan.core.config import GroupingConfig
from locscan.core.models import NO_MEANINGFUL_TEXT, NO_TEXT_DETECTED, BoundingBox, WordBox
from locscan.core.ocr import WordGrouper, group_ocr_words, words_from_dicts


def word(text, x, y, w=50, h=20, conf=90.0):
    return WordBox(text=text, confidence=conf, bounding_box=BoundingBox(x, y, w, h))


def test_empty_input_yields_single_sentinel():
    blocks = group_ocr_words([])

    assert len(blocks) == 1
    assert blocks[0].text == NO_TEXT_DETECTED
    assert blocks[0].confidence == "0.0"
    assert blocks[0].is_sentinel


def test_all_noise_yields_distinct_sentinel():
    blocks = group_ocr_words([word("|", 0, 0, conf=30), word("~.", 60, 0, conf=40)])

    assert [b.text for b in blocks] == [NO_MEANINGFUL_TEXT]
    assert NO_MEANINGFUL_TEXT != NO_TEXT_DETECTED


def test_words_on_one_line_form_one_block():
    words = [
        word("Welcome", 0, 0, w=80),
        word("to", 90, 0, w=20),
        word("our", 120, 0, w=30),
        word("application", 160, 0, w=110),
    ]

    blocks = group_ocr_words(words)

    assert len(blocks) == 1
    assert blocks[0].text == "Welcome to our application"
    assert blocks[0].confidence == "90.00"


def test_reading_order_is_restored_within_a_line():
    # slight vertical jitter stays inside the same row band
    words = [word("application", 160, 2, w=110), word("our", 120, 0, w=30), word("Welcome", 0, 1, w=80), word("to", 90, 0, w=20)]

    blocks = group_ocr_words(words)

    assert blocks[0].text == "Welcome to our application"


def test_distant_clusters_without_overlap_form_two_paragraphs():
    top = [word("Privacy", 0, 0, w=70), word("Policy", 80, 0, w=60)]
    bottom = [word("Terms", 500, 100, w=60), word("apply", 570, 100, w=60)]

    blocks = group_ocr_words(bottom + top)

    assert [b.text for b in blocks] == ["Privacy Policy", "Terms apply"]


def test_close_aligned_lines_form_one_paragraph():
    words = [
        word("Sign", 0, 0, w=40),
        word("in", 50, 0, w=20),
        word("to", 0, 25, w=20),
        word("continue", 30, 25, w=80),
    ]

    blocks = group_ocr_words(words)

    assert len(blocks) == 1
    assert blocks[0].text == "Sign in\nto continue"


def test_wide_horizontal_gap_splits_columns():
    words = [word("Home", 0, 0, w=60), word("Settings", 300, 0, w=90)]

    blocks = group_ocr_words(words)

    assert [b.text for b in blocks] == ["Home", "Settings"]


def test_noise_filter_keeps_whitelisted_short_words():
    words = [word("Go", 0, 0, w=20, conf=50), word("x", 30, 0, w=10, conf=50), word("to", 50, 0, w=20, conf=50)]

    blocks = group_ocr_words(words)

    assert blocks[0].text == "Go to"


def test_confident_short_word_is_not_noise():
    blocks = group_ocr_words([word("OK", 0, 0, w=30, conf=95)])

    assert blocks[0].text == "OK"


def test_confidence_is_unweighted_mean_of_words():
    words = [word("Continue", 0, 0, w=90, conf=80), word("with", 100, 0, w=40, conf=95), word("Google", 150, 0, w=60, conf=95)]

    blocks = group_ocr_words(words)

    assert blocks[0].confidence == "90.00"


def test_single_stray_word_is_its_own_block():
    words = [word("Settings", 0, 0, w=90), word("Save", 600, 400, w=50)]

    blocks = group_ocr_words(words)

    assert [b.text for b in blocks] == ["Settings", "Save"]
    assert all(b.text for b in blocks)


def test_custom_horizontal_threshold():
    words = [word("Sign", 0, 0, w=40), word("up", 70, 0, w=20)]

    assert len(group_ocr_words(words)) == 1
    assert len(WordGrouper(GroupingConfig(horizontal_threshold=20)).group(words)) == 2


def test_words_from_dicts_accepts_camel_case_boxes():
    raw = [
        {"text": "Hello", "confidence": 91, "boundingBox": {"x": 0, "y": 0, "width": 50, "height": 20}},
        {"text": "world", "confidence": "89.5", "bbox": {"x": 60, "y": 0, "width": 50, "height": 20}},
        {"text": "   ", "confidence": 99, "bounding_box": {"x": 0, "y": 0, "width": 1, "height": 1}},
        "junk",
    ]

    words = words_from_dicts(raw)

    assert [w.text for w in words] == ["Hello", "world"]
    assert words[1].confidence == 89.5
    assert group_ocr_words(words)[0].text == "Hello world"


def test_every_block_has_text_for_mixed_inputs():
    inputs = [
        [word("|", 0, 0, conf=20)],
        [word("OK", 0, 0, conf=95)],
        [word("~", 0, 0, conf=10), word("Settings", 40, 0, w=90)],
        [word("to", 0, 0, conf=30), word("|", 0, 300, conf=15)],
        [word("Sign", 0, 0), word("in", 60, 0, w=20), word("-", 100, 0, conf=5), word("Help", 0, 500)],
        [word("Save", 300, 200), word("Cancel", 0, 200, w=70), word("x", 500, 900, w=10, conf=50)],
        [word("Name", 0, 0, h=0), word("Email", 0, 40, w=0)],
    ]

    for words in inputs:
        blocks = group_ocr_words(words)

        assert blocks, words
        assert all(b.text.strip() for b in blocks), blocks
        assert all(isinstance(b.confidence, str) and b.confidence for b in blocks)
