"""Tests for markdown parsing and highlighting."""

from mdpress.core.diagrams import DiagramBlock, DiagramNode, HtmlNode
from mdpress.core.parser import parse_markdown


def _html(result) -> str:
    return "".join(node.html for node in result.nodes if isinstance(node, HtmlNode))


class TestDiagramFences:
    """Tests for diagram fence interception."""

    def test__mermaid_fence__extracted_as_block(self) -> None:
        """Record the verbatim fence contents as a diagram block."""
        result = parse_markdown("```mermaid\ngraph TD\n    A-->B\n```\n")

        assert result.diagrams == [DiagramBlock(index=0, source="graph TD\n    A-->B")]

    def test__mermaid_fence__not_highlighted(self) -> None:
        """Diagram source never reaches the highlighter."""
        result = parse_markdown("```mermaid\ngraph TD\n    A-->B\n```\n")

        assert "A--&gt;B" not in _html(result)
        assert "<pre>" not in _html(result)

    def test__multiple_fences__indexed_in_source_order(self) -> None:
        """Indices follow first-occurrence order."""
        text = "\n\n".join(f"```mermaid\ngraph LR\n    N{i}\n```" for i in range(3))

        result = parse_markdown(text)

        assert [d.index for d in result.diagrams] == [0, 1, 2]
        assert [d.source for d in result.diagrams] == [
            "graph LR\n    N0",
            "graph LR\n    N1",
            "graph LR\n    N2",
        ]
        diagram_nodes = [n for n in result.nodes if isinstance(n, DiagramNode)]
        assert [n.block.index for n in diagram_nodes] == [0, 1, 2]

    def test__no_fences__no_blocks(self) -> None:
        """Plain documents yield no diagram blocks."""
        result = parse_markdown("# Title\n\nJust text.\n")

        assert result.diagrams == []
        assert all(isinstance(n, HtmlNode) for n in result.nodes)

    def test__fence_in_list_item__extracted(self) -> None:
        """Nested diagram fences are extracted too."""
        text = "- item\n\n  ```mermaid\n  graph LR\n  ```\n"

        result = parse_markdown(text)

        assert len(result.diagrams) == 1
        assert result.diagrams[0].source == "graph LR"

    def test__custom_language__intercepts_that_tag(self) -> None:
        """The diagram language tag is configurable."""
        text = "```diagram\nA -> B\n```\n\n```mermaid\ngraph TD\n```\n"

        result = parse_markdown(text, diagram_language="diagram")

        assert [d.source for d in result.diagrams] == ["A -> B"]

    def test__token_lookalike_in_source__left_alone(self) -> None:
        """Literal placeholder-shaped text in the document is not a diagram."""
        text = "<!--mdpress-diagram-0000000000000000-0-->\n\nText.\n"

        result = parse_markdown(text)

        assert result.diagrams == []
        assert "<!--mdpress-diagram-0000000000000000-0-->" in _html(result)

    def test__separate_parses__indices_restart(self) -> None:
        """Extraction state is local to one parse call."""
        parse_markdown("```mermaid\ngraph TD\n```\n")

        result = parse_markdown("```mermaid\ngraph LR\n```\n")

        assert result.diagrams[0].index == 0


class TestCodeHighlighting:
    """Tests for code fence highlighting."""

    def test__known_language__highlighted_with_lexer(self) -> None:
        """Named languages are highlighted with their lexer."""
        result = parse_markdown("```python\ndef add(a, b):\n    return a + b\n```\n")

        html = _html(result)
        assert '<pre><code class="highlight language-python">' in html
        assert '<span class="k">def</span>' in html

    def test__no_language__detected_automatically(self) -> None:
        """Untagged fences are still highlighted."""
        result = parse_markdown("```\nprint('hi')\n```\n")

        html = _html(result)
        assert '<pre><code class="highlight">' in html
        assert "print" in html

    def test__unknown_language__falls_back_without_error(self) -> None:
        """Unrecognized tags degrade to automatic detection."""
        result = parse_markdown("```nosuchlang\nsome text\n```\n")

        html = _html(result)
        assert '<code class="highlight language-nosuchlang">' in html
        assert "some" in html

    def test__code_content__html_escaped(self) -> None:
        """Markup inside code is escaped by the highlighter."""
        result = parse_markdown("```html\n<b>bold</b>\n```\n")

        assert "<b>bold</b>" not in _html(result)

    def test__unclosed_fence__does_not_raise(self) -> None:
        """Malformed fences degrade instead of failing."""
        result = parse_markdown("```python\nprint(1)\n")

        assert "print" in _html(result)


class TestGfmExtensions:
    """Tests for GitHub-flavored markdown features."""

    def test__table__rendered(self) -> None:
        result = parse_markdown("| a | b |\n|---|---|\n| 1 | 2 |\n")

        html = _html(result)
        assert "<table>" in html
        assert "<td>1</td>" in html

    def test__task_list__rendered_as_checkboxes(self) -> None:
        result = parse_markdown("- [x] done\n- [ ] todo\n")

        html = _html(result)
        assert "task-list-item" in html
        assert 'type="checkbox"' in html

    def test__strikethrough__rendered(self) -> None:
        result = parse_markdown("~~gone~~\n")

        assert "<del>gone</del>" in _html(result)

    def test__single_newline__not_hard_break(self) -> None:
        """Line breaks inside a paragraph stay soft."""
        result = parse_markdown("line one\nline two\n")

        assert "<br" not in _html(result)

    def test__raw_html__passed_through(self) -> None:
        result = parse_markdown('<div class="note">Hi</div>\n')

        assert '<div class="note">Hi</div>' in _html(result)


class TestTitle:
    """Tests for first-H1 title extraction."""

    def test__first_h1__becomes_title(self) -> None:
        result = parse_markdown("# Guide\n\n# Second\n")

        assert result.title == "Guide"

    def test__entities__unescaped(self) -> None:
        result = parse_markdown("# Tips & *Tricks*\n")

        assert result.title == "Tips & Tricks"

    def test__no_h1__no_title(self) -> None:
        result = parse_markdown("## Section\n")

        assert result.title is None
