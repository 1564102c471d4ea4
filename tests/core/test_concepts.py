from edconnect.core.services.concept_extraction import ConceptExtractor

TEXT = "Energy is conserved, and this equation uses algebra and a metaphor."


def test_subject_picks_one_table():
    extractor = ConceptExtractor()
    assert extractor.category_for("Mathematics") == "math"
    assert extractor.category_for("AP Biology") == "science"
    assert extractor.category_for("English Literature") == "english"
    assert extractor.category_for("World History") == "history"
    assert extractor.category_for("Art") is None

    assert extractor.extract(TEXT, "Mathematics") == ["Equation", "Algebra"]
    assert extractor.extract(TEXT, "Physics") == ["Energy"]
    assert extractor.extract(TEXT, "english") == ["Metaphor"]


def test_unknown_subject_uses_every_table():
    extractor = ConceptExtractor()
    assert extractor.extract(TEXT, "Art") == ["Energy", "Equation", "Algebra", "Metaphor"]
    assert extractor.extract(TEXT) == ["Energy", "Equation", "Algebra", "Metaphor"]


def test_concepts_are_capitalized_and_deduplicated():
    extractor = ConceptExtractor()
    text = "ALGEBRA is fun. algebra again, Algebra once more, then a Quadratic."
    assert extractor.extract(text, "Math") == ["Algebra", "Quadratic"]


def test_whole_words_only():
    extractor = ConceptExtractor()
    assert extractor.extract("Functional programming", "Math") == []


def test_result_is_capped():
    tables = {"math": {"subjects": ["math"], "keywords": ["one", "two", "three"]}}
    extractor = ConceptExtractor(tables=tables, max_concepts=2)
    assert extractor.extract("three two one", "math") == ["Three", "Two"]


def test_default_cap_is_ten():
    extractor = ConceptExtractor()
    text = (
        "algebra equation quadratic polynomial geometry theorem proof function "
        "derivative integral matrix vector probability statistics"
    )
    assert len(extractor.extract(text, "Math")) == 10


def test_empty_text():
    assert ConceptExtractor().extract("", "Math") == []
