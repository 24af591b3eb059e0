"""Stop words dropped from index tokens.

Maintained separately from the tokenizer so the lists can be edited without
touching normalization rules. Both lists are already lowercase and free of
diacritics, matching the tokenizer's output.
"""

ENGLISH_STOP_WORDS = frozenset(
    {
        "a",
        "an",
        "and",
        "are",
        "as",
        "at",
        "be",
        "by",
        "for",
        "from",
        "has",
        "he",
        "in",
        "is",
        "it",
        "its",
        "of",
        "on",
        "that",
        "the",
        "to",
        "was",
        "will",
        "with",
    }
)

# Tagalog articles, pronouns, prepositions and demonstratives.
FILIPINO_STOP_WORDS = frozenset(
    {
        "ang",
        "mga",
        "ng",
        "sa",
        "at",
        "ay",
        "na",
        "para",
        "ni",
        "si",
        "kay",
        "ko",
        "mo",
        "niya",
        "kami",
        "kayo",
        "sila",
        "ako",
        "ikaw",
        "ka",
        "namin",
        "natin",
        "ninyo",
        "nila",
        "tayo",
        "siya",
        "ito",
        "iyan",
        "iyon",
        "dito",
        "diyan",
        "doon",
        "rito",
        "riyan",
        "roon",
    }
)

STOP_WORDS = ENGLISH_STOP_WORDS | FILIPINO_STOP_WORDS
