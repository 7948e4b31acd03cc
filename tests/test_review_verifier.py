import pytest

from bookreviews.reviews.verifier import ReviewVerifier


@pytest.fixture
def verifier():
    return ReviewVerifier()


def test_fails_when_review_contains_swear_word(verifier):
    review = "This book is shit and I would not give it to anyone I know at all"
    assert not verifier.does_meet_quality_standards(review), "ReviewVerifier did not detect swear word"


def test_fails_when_review_contains_lorem_ipsum(verifier):
    review = """
      Lorem ipsum dolor sit amet, consectetur adipiscing elit, sed do
      eiusmod tempor incididunt ut labore et dolore magna aliqua.
      Ut enim ad minim veniam, quis nostrud exercitation
      ullamco laboris nisi ut aliquip ex ea commodo consequat.
      """
    assert not verifier.does_meet_quality_standards(review), "ReviewVerifier did not detect lorem ipsum"


@pytest.mark.parametrize(
    "review",
    [
        "",
        "Good book",
        "This book is shit",
        "I liked it a lot, really!",
        "good good good good good good good good good good good book",
        "Damn, what a waste of my time this was, never again will I read it",
    ],
)
def test_fails_when_review_is_of_bad_quality(verifier, review):
    assert not verifier.does_meet_quality_standards(review), "ReviewVerifier did not detect bad review"


def test_passes_when_review_is_good(verifier):
    review = """
      I recommend this book totally for someone who
      who wants to lean Junit testing in depth
      """
    assert verifier.does_meet_quality_standards(review), "ReviewVerifier did not detect good review"


def test_swear_word_check_matches_whole_words_only(verifier):
    review = "A classic about a passionate assistant who learns the craft of programming step by step"
    assert verifier.does_meet_quality_standards(review)
