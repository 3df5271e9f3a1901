"""
End-to-end extraction tests

Tests extract(): data assembly, unmatched reporting, confidence, strict
mode, debug info and component placement.
"""

import pytest

from unrender import extract, round_trip_component, ExtractError, ExtractResult, ComponentPlacement
from unrender.config import appsettings
from unrender.lib.confidence import WeightedScorer


BLOG_TEMPLATE = """# {post.title}

*By {post.author} on {post.date}*

{post.content}

---

**Tags:** {post.tags}"""

BLOG_RENDERED = """# Hello World

*By Jane Doe on 2024-01-15*

This is the post body.

It has two paragraphs.

---

**Tags:** python, testing"""

SCHEMA_TEMPLATE = """# {type.label}

## Description

{type.comment}

## Properties

<PropertyTable properties={type.properties} />"""

SCHEMA_RENDERED = """# Person

## Description

A person (alive, dead, undead, or fictional).

## Properties

| Property | Type | Description |
|---|---|---|
| name | Text | The name of the item |
| email | Text | Email address |"""

PROPERTIES = [
    {"name": "name", "type": "Text", "description": "The name of the item"},
    {"name": "email", "type": "Text", "description": "Email address"},
]


def table_render(props):
    header = "| Property | Type | Description |\n|---|---|---|"
    rows = "\n".join(f"| {p['name']} | {p['type']} | {p['description']} |" for p in props["properties"])
    return f"{header}\n{rows}"


def table_parse(content):
    rows = [
        r for r in content.split("\n")
        if r.startswith("|") and "---" not in r and "Property" not in r
    ]
    properties = []
    for row in rows:
        cells = [c.strip() for c in row.split("|") if c]
        properties.append({"name": cells[0], "type": cells[1], "description": cells[2]})
    return {"properties": properties}


PropertyTable = round_trip_component(render=table_render, extract=table_parse)


class TestScenarios:
    """The reference scenarios"""

    def test_simple_title(self):
        """# {data.title} against '# Hello World'"""
        result = extract("# {data.title}", "# Hello World")

        assert isinstance(result, ExtractResult)
        assert result.data == {"data": {"title": "Hello World"}}
        assert result.confidence == 1.0
        assert result.unmatched == []

    def test_nested_path(self):
        """Deep paths build nested dicts"""
        result = extract("{user.profile.settings.theme}", "dark")
        assert result.data == {"user": {"profile": {"settings": {"theme": "dark"}}}}

    def test_component_without_extractor(self):
        """Unregistered component is reported, expressions still extracted"""
        template = "# {data.title}\n\n<PropertyTable properties={data.properties} />"
        rendered = "# Test\n\n| Property | Type |\n|---|---|\n| name | Text |"
        result = extract(template, rendered)

        assert result.data == {"data": {"title": "Test"}}
        assert result.unmatched == ["<PropertyTable />"]
        assert result.confidence == 0.5

    def test_component_without_extractor_strict(self):
        """Strict mode raises ExtractError with diagnostics"""
        template = "# {data.title}\n\n<PropertyTable properties={data.properties} />"
        rendered = "# Test\n\n| Property | Type |\n|---|---|\n| name | Text |"

        with pytest.raises(ExtractError) as excinfo:
            extract(template, rendered, strict=True)

        error = excinfo.value
        assert error.kind == "unmatched-slots"
        assert "<PropertyTable />" in error.details.unmatched
        assert error.details.debug.matched is False
        assert "Failed to extract 1 slots" in str(error)


class TestDocuments:
    """Multi-slot documents"""

    def test_blog_post(self):
        """Inline anchors, paragraph content and a separator"""
        result = extract(BLOG_TEMPLATE, BLOG_RENDERED)

        assert result.data == {
            "post": {
                "title": "Hello World",
                "author": "Jane Doe",
                "date": "2024-01-15",
                "content": "This is the post body.\n\nIt has two paragraphs.",
                "tags": "python, testing",
            }
        }
        assert result.confidence == 1.0

    def test_word_boundaries(self):
        """' on ' does not match inside 'Jon'"""
        result = extract("{p.name} on {p.duty}", "Jon Snow on watch")
        assert result.data == {"p": {"name": "Jon Snow", "duty": "watch"}}

    def test_sections_with_code(self):
        """Header anchors delimit whole sections"""
        template = "# {doc.title}\n\n## Install\n\n{doc.install}\n\n## Usage\n\n{doc.usage}"
        rendered = (
            "# tool\n\n## Install\n\n```bash\npip install tool\n```\n\n"
            "Then restart.\n\n## Usage\n\nRun `tool --help`."
        )
        result = extract(template, rendered)

        assert result.data["doc"]["install"] == "```bash\npip install tool\n```\n\nThen restart."
        assert result.data["doc"]["usage"] == "Run `tool --help`."

    def test_schema_type_with_extractor(self):
        """Registered component extractor fills its bound path"""
        result = extract(
            SCHEMA_TEMPLATE,
            SCHEMA_RENDERED,
            extractors={"PropertyTable": PropertyTable.extractor},
        )

        assert result.unmatched == []
        assert result.confidence == 1.0
        assert result.data == {
            "type": {
                "label": "Person",
                "comment": "A person (alive, dead, undead, or fictional).",
                "properties": PROPERTIES,
            }
        }

    def test_rendered_component_round_trips(self):
        """A document rendered with the component extracts back to its props"""
        rendered = "# Person\n\n## Description\n\nA person.\n\n## Properties\n\n" + table_render(
            {"properties": PROPERTIES}
        )
        result = extract(SCHEMA_TEMPLATE, rendered, extractors={"PropertyTable": PropertyTable.extractor})
        assert result.data["type"]["properties"] == PROPERTIES

    def test_unicode(self):
        """Non-ASCII values survive"""
        result = extract("# {data.title}\n\n{data.body}", "# Ünïcödé 日本語\n\nÉmojis 🎉 ok")
        assert result.data == {"data": {"title": "Ünïcödé 日本語", "body": "Émojis 🎉 ok"}}

    def test_repeated_path_later_wins(self):
        """A path bound twice keeps the later value"""
        result = extract("{a.x} / {a.x}", "first / second")
        assert result.data == {"a": {"x": "second"}}


class TestEdgeCases:
    """Empty templates, empty rendered text and partial matches"""

    def test_empty_template(self):
        """Empty template gives empty data and full confidence"""
        result = extract("", "anything at all")
        assert result.data == {}
        assert result.confidence == 1.0
        assert result.unmatched == []

    def test_template_without_slots(self):
        """Zero slots gives empty data and full confidence"""
        result = extract("Just text", "Something else entirely")
        assert result.data == {}
        assert result.confidence == 1.0

    def test_empty_rendered(self):
        """Nothing located: confidence 0, every slot unmatched"""
        result = extract("# {data.title}\n\n{data.body}", "")
        assert result.data == {}
        assert result.confidence == 0.0
        assert result.unmatched == ["data.title", "data.body"]

    def test_partial_match(self):
        """Missing anchors cost only the slots that depend on them"""
        template = "# {doc.title}\n\nBy {doc.author}\n\nTags: {doc.tags}"
        result = extract(template, "# T\n\nWritten by someone\n\nTags: a, b")

        assert result.data == {"doc": {"tags": "a, b"}}
        assert result.unmatched == ["doc.title", "doc.author"]
        assert result.confidence == pytest.approx(1 / 3)

    def test_empty_value_unmatched(self):
        """A located but empty value counts as unmatched"""
        result = extract("Title: {a.title}\n\nBody", "Title: \n\nBody")
        assert result.unmatched == ["a.title"]
        assert result.confidence == 0.0

    def test_conditional_and_loop_reported(self):
        """Conditionals and loops are located but never evaluated"""
        template = '# {data.title}\n\nStatus: {data.active ? "on" : "off"}\n\n{data.items.map(i => i.name)}'
        rendered = "# T\n\nStatus: on\n\na, b, c"
        result = extract(template, rendered)

        assert result.data == {"data": {"title": "T"}}
        assert result.unmatched == ['data.active ? "on" : "off"', "data.items.map(i => i.name)"]
        assert result.confidence == pytest.approx(1 / 3)
        assert " on" in result.debug.groups.values()

    def test_strict_not_raised_when_complete(self):
        """Strict mode is silent when everything matched"""
        result = extract("# {data.title}", "# Hi", strict=True)
        assert result.data == {"data": {"title": "Hi"}}

    def test_strict_from_settings(self, monkeypatch):
        """strict=None falls back to settings"""
        monkeypatch.setattr(appsettings, "strict_mode", True)
        with pytest.raises(ExtractError):
            extract("# {data.title}", "")

    def test_explicit_strict_overrides_settings(self, monkeypatch):
        """strict=False wins over settings"""
        monkeypatch.setattr(appsettings, "strict_mode", True)
        result = extract("# {data.title}", "", strict=False)
        assert result.unmatched == ["data.title"]


class TestDebugInfo:
    """debug is always populated"""

    def test_debug_fields(self):
        """Slots, pattern, matched flag and raw groups"""
        result = extract("# {data.title}", "# Hello World")

        assert len(result.debug.slots) == 1
        assert result.debug.pattern == r"\#(?!\S)(?P<slot_data_title_0>.*)"
        assert result.debug.matched is True
        assert result.debug.groups == {"slot_data_title_0": " Hello World"}

    def test_unlocated_group_is_none(self):
        """Slots that were not located have a None group"""
        result = extract("Title: {a.t}", "nothing")
        assert result.debug.groups == {"slot_a_t_0": None}
        assert result.debug.matched is False


class TestComponentExtractors:
    """Extractor dispatch and placement modes"""

    def test_placement_root(self):
        """ROOT merges the returned dict at top level"""
        result = extract(
            SCHEMA_TEMPLATE,
            SCHEMA_RENDERED,
            extractors={"PropertyTable": PropertyTable.extractor},
            placement=ComponentPlacement.ROOT,
        )
        assert result.data["properties"] == PROPERTIES
        assert "properties" not in result.data["type"]

    def test_placement_component(self):
        """COMPONENT stores the returned dict under the component name"""
        result = extract(
            SCHEMA_TEMPLATE,
            SCHEMA_RENDERED,
            extractors={"PropertyTable": PropertyTable.extractor},
            placement="component",
        )
        assert result.data["PropertyTable"] == {"properties": PROPERTIES}
        assert result.data["type"]["label"] == "Person"

    def test_placement_from_settings(self, monkeypatch):
        """placement=None falls back to settings"""
        monkeypatch.setattr(appsettings, "component_placement", ComponentPlacement.COMPONENT)
        result = extract(SCHEMA_TEMPLATE, SCHEMA_RENDERED, extractors={"PropertyTable": PropertyTable.extractor})
        assert "PropertyTable" in result.data

    def test_bindings_drop_unbound_props(self):
        """BINDINGS ignores returned keys that are not bound props"""
        extractor = round_trip_component(
            render=lambda props: props["text"],
            extract=lambda content: {"text": content, "extra": 1},
        ).extractor
        result = extract("<Note text={page.note} />", "Remember this", extractors={"Note": extractor})
        assert result.data == {"page": {"note": "Remember this"}}

    def test_plain_callable_extractor(self):
        """A bare function is accepted as an extractor"""
        result = extract(
            "<Note text={page.note} />",
            "Hi",
            extractors={"Note": lambda content: {"text": content.upper()}},
        )
        assert result.data == {"page": {"note": "HI"}}

    def test_extractor_returning_none(self):
        """None from an extractor means unmatched"""
        result = extract("<Note text={page.note} />", "Hi", extractors={"Note": lambda content: None})
        assert result.unmatched == ["<Note />"]
        assert result.data == {}

    def test_extractor_pattern_not_recognized(self):
        """A component whose pattern does not match its content is unmatched"""
        Table = round_trip_component(render=table_render, extract=table_parse, pattern=r"^\|")
        result = extract(
            "<PropertyTable properties={t.props} />",
            "not a table",
            extractors={"PropertyTable": Table.extractor},
        )
        assert result.unmatched == ["<PropertyTable />"]

    def test_empty_component_span(self):
        """A component whose span is empty is unmatched"""
        result = extract(
            "# {data.title}\n\n<Tags items={data.tags} />",
            "# T",
            extractors={"Tags": lambda content: {"items": [content]}},
        )
        assert result.unmatched == ["<Tags />"]

    def test_extractor_errors_propagate(self):
        """Exceptions from extractors reach the caller unchanged"""
        def broken(content):
            raise ValueError("bad table")

        with pytest.raises(ValueError, match="bad table"):
            extract("<PropertyTable properties={t.p} />", "| x |", extractors={"PropertyTable": broken})

    def test_custom_scorer(self):
        """The scorer is pluggable"""
        template = "# {data.title}\n\n<PropertyTable properties={data.properties} />"
        rendered = "# Test\n\n| a |"
        result = extract(template, rendered, scorer=WeightedScorer({"component": 3.0}))
        assert result.confidence == pytest.approx(0.25)
