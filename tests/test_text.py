from mockinterview.utils.text import tokenize_words, split_sentences, bigrams


def test_tokenize_words_drops_punctuation():
    assert tokenize_words("Um, so, basically I think the answer is um correct.") == [
        "Um", "so", "basically", "I", "think", "the", "answer", "is", "um", "correct",
    ]


def test_tokenize_words_keeps_contractions():
    assert tokenize_words("Don't stop") == ["Don't", "stop"]


def test_split_sentences_trims_and_drops_empty():
    assert split_sentences("One. Two!  Three? ") == ["One", "Two", "Three"]
    assert split_sentences("") == []
    assert split_sentences("...") == []


def test_bigrams():
    assert bigrams(["a", "b", "c"]) == [("a", "b"), ("b", "c")]
    assert bigrams(["a"]) == []
