"""Tests for the prompts module."""

import pytest

from slicer.lib.prompts import (
    PROMPTS_DIR,
    PromptError,
    build_section,
    clear_cache,
    load_prompt,
    render_prompt,
)
from slicer.plan.models import ArtifactKind


class TestLoadPrompt:
    """Tests for load_prompt function."""

    def test_load_existing_prompt(self):
        """Should load an existing prompt template."""
        clear_cache()
        content = load_prompt("propose_slices")
        assert "{feature_name}" in content
        assert "{description}" in content

    def test_html_comments_stripped(self):
        """Should strip HTML comments from loaded prompts."""
        clear_cache()
        content = load_prompt("propose_slices")
        assert "<!--" not in content
        assert "-->" not in content
        assert "Variables:" not in content

    def test_load_nonexistent_prompt_raises(self):
        """Should raise PromptError for missing template."""
        clear_cache()
        with pytest.raises(PromptError) as exc_info:
            load_prompt("nonexistent_prompt_xyz")
        assert "not found" in str(exc_info.value)
        assert "nonexistent_prompt_xyz" in str(exc_info.value)

    def test_caching_works(self):
        """Should cache loaded prompts."""
        clear_cache()
        content1 = load_prompt("implement_slice")
        content2 = load_prompt("implement_slice")
        assert content1 is content2

    def test_clear_cache(self):
        clear_cache()
        load_prompt("implement_slice")
        clear_cache()
        assert load_prompt.cache_info().hits == 0
        assert load_prompt.cache_info().currsize == 0

    def test_template_for_every_artifact_kind(self):
        """Every artifact kind has a prompt file."""
        for kind in ArtifactKind:
            assert (PROMPTS_DIR / f"{kind.prompt_name}.md").exists(), kind


class TestRenderPrompt:
    """Tests for render_prompt function."""

    def test_render_with_variables(self):
        """Should interpolate variables into template."""
        clear_cache()
        result = render_prompt("propose_slices", feature_name="checkout", description="Buy things")
        assert "Name: checkout" in result
        assert "Buy things" in result

    def test_literal_braces_survive(self):
        """Doubled braces in the JSON example render as single braces."""
        result = render_prompt("propose_slices", feature_name="f", description="d")
        assert '"slices": [' in result
        assert "{{" not in result

    def test_render_missing_variable_raises(self):
        """Should raise PromptError with helpful message for missing variable."""
        clear_cache()
        with pytest.raises(PromptError) as exc_info:
            render_prompt("propose_slices", feature_name="checkout")
        assert "description" in str(exc_info.value)


class TestBuildSection:
    """Tests for build_section helper."""

    def test_with_content(self):
        assert build_section("body", "## Header") == "## Header\n\nbody\n"

    def test_empty_without_message(self):
        assert build_section("", "## Header") == ""
        assert build_section(None, "## Header") == ""

    def test_empty_with_message(self):
        assert build_section("", "## Header", "None") == "## Header\n\nNone\n"
