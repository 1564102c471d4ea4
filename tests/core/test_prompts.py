from edconnect.core.services.tutor_prompts import (
    BUILD_WITH_AI_PROMPT,
    CLOCK_PROMPT,
    MUSIC_PROMPT,
    TUTOR_SYSTEM_PROMPT,
    build_summary_prompt,
    build_system_prompt,
    get_elective_prompt,
)


def test_base_prompt_without_subject():
    assert build_system_prompt() == TUTOR_SYSTEM_PROMPT


def test_subject_and_topic_lines_are_appended():
    prompt = build_system_prompt("Mathematics", "Fractions")
    assert prompt.startswith(TUTOR_SYSTEM_PROMPT)
    assert "Current Subject Focus: Mathematics" in prompt
    assert prompt.endswith("Current Topic: Fractions")


def test_topic_line_omitted_when_missing():
    assert "Current Topic" not in build_system_prompt("Science")


def test_elective_addenda():
    assert get_elective_prompt("Build with Claude") == BUILD_WITH_AI_PROMPT
    assert get_elective_prompt("Build with AI") == BUILD_WITH_AI_PROMPT
    assert get_elective_prompt("Music Theory") == MUSIC_PROMPT
    assert get_elective_prompt("Clock Reading") == CLOCK_PROMPT
    assert get_elective_prompt("Mathematics") is None
    assert get_elective_prompt("Building Trades") is None
    assert get_elective_prompt(None) is None


def test_elective_prompt_goes_before_subject_line():
    prompt = build_system_prompt("Music", "Rhythm")
    assert prompt.index(MUSIC_PROMPT) < prompt.index("Current Subject Focus: Music")


def test_summary_prompt_asks_for_the_json_fields():
    prompt = build_summary_prompt("1. user: hi...", "Algebra", "Linear equations")
    for key in (
        "summary",
        "performanceScore",
        "improvementAreas",
        "strengthAreas",
        "conceptsCovered",
    ):
        assert f'"{key}"' in prompt
    assert "Subject: Algebra" in prompt
    assert "Topic: Linear equations" in prompt
    assert "1. user: hi..." in prompt


def test_summary_prompt_without_topic():
    assert "Topic:" not in build_summary_prompt("1. user: hi...", "Algebra")
