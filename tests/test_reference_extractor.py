"""Tests for extract_references_in_node_expressions."""

import pytest

from subflow_extractor.core.exceptions import (
    StartNodeNameConflictError,
    SubflowExtractorError,
    UnknownNodeReferenceError,
)
from subflow_extractor.engine.reference_extractor import extract_references_in_node_expressions
from subflow_extractor.engine.types import NodeDefinition

START = "Start"


def make_node(name: str, expressions: list[str] | None = None) -> NodeDefinition:
    return NodeDefinition(
        name=name,
        type="n8n-nodes-base.set",
        parameters={f"p{i}": f"={{{{ {x} }}}}" for i, x in enumerate(expressions or [])},
    )


def params(result, index: int = 0) -> dict:
    return result.nodes[index].parameters


def test_extracts_used_expressions():
    nodes = [
        make_node("B", ['$("A").item.json.myField']),
        make_node("C", ['$("A").first().json.myField.anotherField']),
    ]
    result = extract_references_in_node_expressions(nodes, ["A", "B", "C"], START)

    assert list(result.variables.items()) == [
        ("myField", '$("A").item.json.myField'),
        ("myField_anotherField_first", '$("A").first().json.myField.anotherField'),
    ]
    assert [n.name for n in result.nodes] == ["B", "C"]
    assert params(result, 0) == {"p0": "={{ $('Start').item.json.myField }}"}
    assert params(result, 1) == {"p0": "={{ $('Start').first().json.myField_anotherField_first }}"}


def test_simple_name_clashes():
    nodes = [
        make_node("B", ['$("A").item.json.myField']),
        make_node("C", ['$("D").item.json.myField']),
        make_node("E", ['$("F").item.json.myField']),
    ]
    result = extract_references_in_node_expressions(nodes, ["A", "B", "C", "D", "E", "F"], START)

    assert list(result.variables.items()) == [
        ("myField", '$("A").item.json.myField'),
        ("D_myField", '$("D").item.json.myField'),
        ("F_myField", '$("F").item.json.myField'),
    ]
    assert params(result, 0) == {"p0": "={{ $('Start').item.json.myField }}"}
    assert params(result, 1) == {"p0": "={{ $('Start').item.json.D_myField }}"}
    assert params(result, 2) == {"p0": "={{ $('Start').item.json.F_myField }}"}


def test_complex_name_clashes():
    nodes = [
        make_node("F", ['$("A").item.json.myField']),
        make_node("B", ['$("A").item.json.Node_Name_With_Gap_myField']),
        make_node("C", ['$("D").item.json.Node_Name_With_Gap_myField']),
        make_node("E", ['$("Node_Name_With_Gap").item.json.myField']),
    ]
    node_names = ["A", "B", "C", "D", "E", "F", "Node_Name_With_Gap"]
    result = extract_references_in_node_expressions(nodes, node_names, START)

    assert list(result.variables.items()) == [
        ("myField", '$("A").item.json.myField'),
        ("Node_Name_With_Gap_myField", '$("A").item.json.Node_Name_With_Gap_myField'),
        ("D_Node_Name_With_Gap_myField", '$("D").item.json.Node_Name_With_Gap_myField'),
        # Clashes with A.myField, then with B's Node_Name_With_Gap_myField
        ("Node_Name_With_Gap_myField_1", '$("Node_Name_With_Gap").item.json.myField'),
    ]
    assert params(result, 3) == {
        "p0": "={{ $('Start').item.json.Node_Name_With_Gap_myField_1 }}"
    }


def test_code_node_source_is_scanned():
    code = NodeDefinition(
        name="Code",
        type="n8n-nodes-base.code",
        type_version=2,
        position={"x": 660, "y": 0},
        id="c9de02d0-982a-4f8c-9af7-93f63795aa9b",
        parameters={
            "jsCode": (
                "for (const item of $input.all()) {\n"
                "  item.json.myNewField = $('DebugHelper').first().json.uid;\n"
                "}\n\nreturn $input.all();"
            ),
        },
    )
    result = extract_references_in_node_expressions([code], ["DebugHelper", "Code"], START)

    assert list(result.variables.items()) == [("uid_first", "$('DebugHelper').first().json.uid")]
    assert result.nodes == [
        NodeDefinition(
            name="Code",
            type="n8n-nodes-base.code",
            type_version=2,
            position={"x": 660, "y": 0},
            id="c9de02d0-982a-4f8c-9af7-93f63795aa9b",
            parameters={
                "jsCode": (
                    "for (const item of $input.all()) {\n"
                    "  item.json.myNewField = $('Start').first().json.uid_first;\n"
                    "}\n\nreturn $input.all();"
                ),
            },
        )
    ]


def test_reference_to_node_in_subgraph_is_left_alone():
    nodes = [
        make_node("B", ['$("A").item.json.myField']),
        make_node("C", ['$("B").first().json.myField.anotherField']),
    ]
    result = extract_references_in_node_expressions(nodes, ["A", "B", "C"], START)

    assert list(result.variables.items()) == [("myField", '$("A").item.json.myField')]
    assert params(result, 1) == {"p0": '={{ $("B").first().json.myField.anotherField }}'}


def test_bare_reference_to_node_in_subgraph_is_left_alone():
    nodes = [make_node("B"), make_node("C", ['$("B")'])]
    result = extract_references_in_node_expressions(nodes, ["A", "B", "C"], START)

    assert result.variables == {}
    assert params(result, 1) == {"p0": '={{ $("B") }}'}


def test_raises_if_node_name_clashes_with_start_name():
    nodes = [make_node("Start", ['$("A").item.json.myField'])]
    with pytest.raises(StartNodeNameConflictError) as exc_info:
        extract_references_in_node_expressions(nodes, ["A", "Start"], START)
    assert exc_info.value.start_node_name == "Start"


def test_custom_start_node_name():
    nodes = [make_node("Start", ['$("A").item.json.myField'])]
    result = extract_references_in_node_expressions(nodes, ["A", "Start"], "A different start name")

    assert list(result.variables.items()) == [("myField", '$("A").item.json.myField')]
    assert params(result) == {"p0": "={{ $('A different start name').item.json.myField }}"}


def test_raises_if_subgraph_node_not_in_node_names():
    nodes = [make_node("B", ['$("A").item.json.myField'])]
    with pytest.raises(UnknownNodeReferenceError) as exc_info:
        extract_references_in_node_expressions(nodes, ["A"], START)
    assert exc_info.value.node_name == "B"


def test_raises_if_expression_references_unknown_node():
    nodes = [make_node("B", ['$("Ghost").item.json.myField'])]
    with pytest.raises(UnknownNodeReferenceError) as exc_info:
        extract_references_in_node_expressions(nodes, ["A", "B"], START)
    assert exc_info.value.node_name == "Ghost"
    assert exc_info.value.source_node == "B"
    assert isinstance(exc_info.value, SubflowExtractorError)


def test_input_nodes_are_not_mutated():
    node = make_node("B", ['$("A").item.json.myField'])
    extract_references_in_node_expressions([node], ["A", "B"], START)
    assert node.parameters == {"p0": '={{ $("A").item.json.myField }}'}


def test_item_matching_examples():
    nodes = [
        make_node(
            "B",
            [
                '$("A").itemMatching(0).json.myField',
                '$("A").itemMatching(1).json.myField',
                '$("C").itemMatching(1).json.myField',
                '$("A").itemMatching(20).json.myField',
            ],
        )
    ]
    result = extract_references_in_node_expressions(nodes, ["A", "B", "C"], START)

    assert list(result.variables.items()) == [
        ("myField_itemMatching_0", '$("A").itemMatching(0).json.myField'),
        ("myField_itemMatching_1", '$("A").itemMatching(1).json.myField'),
        ("C_myField_itemMatching_1", '$("C").itemMatching(1).json.myField'),
        ("myField_itemMatching_20", '$("A").itemMatching(20).json.myField'),
    ]
    assert params(result) == {
        "p0": "={{ $('Start').itemMatching(0).json.myField_itemMatching_0 }}",
        "p1": "={{ $('Start').itemMatching(1).json.myField_itemMatching_1 }}",
        "p2": "={{ $('Start').itemMatching(1).json.C_myField_itemMatching_1 }}",
        "p3": "={{ $('Start').itemMatching(20).json.myField_itemMatching_20 }}",
    }


def test_complex_item_matching_arguments_are_kept_verbatim():
    fib = 'eval("const fib = (n) => n < 2 ? 1 : (fib(n - 1) + fib(n-2)); fib(15)")'
    expressions = [
        '$("A").itemMatching(Math.PI).json.myField',
        f'$("A").itemMatching({fib}).json.anotherField',
        '$("A").itemMatching($("A").itemMatch(1).json.myField).json.myField',
    ]
    result = extract_references_in_node_expressions([make_node("B", expressions)], ["A", "B"], START)

    assert list(result.variables.values()) == expressions
    names = list(result.variables)
    assert names[0] == "myField_itemMatching_MathPI"
    assert names[1].startswith("anotherField_itemMatching_evalconst_fib")
    assert names[2] == "myField_itemMatching_$AitemMatch1jsonmyField"
    assert params(result)["p1"] == f"={{{{ $('Start').itemMatching({fib}).json.{names[1]} }}}}"


def test_multiple_expressions():
    nodes = [
        make_node("B", ['$("A").item.json.myField', '$("C").item.json.anotherField']),
        make_node("D", ['$("A").item.json.myField', '$("B").item.json.someField']),
    ]
    result = extract_references_in_node_expressions(nodes, ["A", "B", "C", "D"], START)

    assert list(result.variables.items()) == [
        ("myField", '$("A").item.json.myField'),
        ("anotherField", '$("C").item.json.anotherField'),
    ]
    assert params(result, 0) == {
        "p0": "={{ $('Start').item.json.myField }}",
        "p1": "={{ $('Start').item.json.anotherField }}",
    }
    assert params(result, 1) == {
        "p0": "={{ $('Start').item.json.myField }}",
        "p1": '={{ $("B").item.json.someField }}',
    }


def test_calls_on_the_data_accessor_are_kept():
    nodes = [make_node("A", ['$("B B").first().toJsonObject().randomJSFunction()'])]
    result = extract_references_in_node_expressions(nodes, ["A", "B B"], START)

    assert list(result.variables.items()) == [("B_B_first", '$("B B").first()')]
    assert params(result) == {
        "p0": "={{ $('Start').first().json.B_B_first.toJsonObject().randomJSFunction() }}"
    }


def test_spaces_and_special_characters_in_node_names():
    weird = 'A \\" |[w.e,i,r$d]| `\' Ñode  \\$\\( Name \\)'
    nodes = [
        make_node("a_=-9-0!@#!%^$%&*(", ['$("A").item.json.myField']),
        make_node("A node with spaces", [f'$("{weird}").item.json.myField']),
    ]
    node_names = ["A", "A node with spaces", weird, "a_=-9-0!@#!%^$%&*("]
    result = extract_references_in_node_expressions(nodes, node_names, START)

    assert list(result.variables.items()) == [
        ("myField", '$("A").item.json.myField'),
        ("A__weir$d__ode__$_Name__myField", f'$("{weird}").item.json.myField'),
    ]
    assert params(result, 0) == {"p0": "={{ $('Start').item.json.myField }}"}
    assert params(result, 1) == {
        "p0": "={{ $('Start').item.json.A__weir$d__ode__$_Name__myField }}"
    }


def test_same_signature_in_different_syntaxes_shares_a_name():
    nodes = [
        make_node("B", ['$("A").item.json.id', '$node["A"].json.id', "$node.A.json.id"]),
    ]
    result = extract_references_in_node_expressions(nodes, ["A", "B"], START)

    assert list(result.variables.items()) == [("id", '$("A").item.json.id')]
    assert set(params(result).values()) == {"={{ $('Start').item.json.id }}"}


def test_several_references_in_one_string():
    nodes = [
        make_node("B", ['$("A").item.json.x + $("C").last().json.y + $("B").item.json.z']),
    ]
    result = extract_references_in_node_expressions(nodes, ["A", "B", "C"], START)

    assert list(result.variables) == ["x", "y_last"]
    assert params(result) == {
        "p0": (
            "={{ $('Start').item.json.x + $('Start').last().json.y_last"
            ' + $("B").item.json.z }}'
        )
    }


def test_external_reference_nested_in_internal_accessor_argument():
    nodes = [
        make_node("B", ['$("B").itemMatching($("A").item.json.index).json.x']),
    ]
    result = extract_references_in_node_expressions(nodes, ["A", "B"], START)

    assert list(result.variables.items()) == [("index", '$("A").item.json.index')]
    assert params(result) == {
        "p0": "={{ $(\"B\").itemMatching($('Start').item.json.index).json.x }}"
    }


def test_nested_parameters_are_rewritten():
    node = NodeDefinition(
        name="B",
        type="n8n-nodes-base.set",
        parameters={
            "options": {"values": ['={{ $("A").item.json.x }}', 3, None]},
            "mode": "manual",
        },
    )
    result = extract_references_in_node_expressions([node], ["A", "B"], START)

    assert result.variables == {"x": '$("A").item.json.x'}
    assert params(result) == {
        "options": {"values": ["={{ $('Start').item.json.x }}", 3, None]},
        "mode": "manual",
    }


def test_plain_strings_are_not_scanned():
    node = NodeDefinition(
        name="B",
        type="n8n-nodes-base.set",
        parameters={"text": '$("A").item.json.x'},
    )
    result = extract_references_in_node_expressions([node], ["A", "B"], START)

    assert result.variables == {}
    assert params(result) == {"text": '$("A").item.json.x'}


def test_repeated_calls_give_identical_results():
    nodes = [
        make_node("B", ['$("A").item.json.myField', '$("C").all().length']),
        make_node("D", ['$("A").first().json.other']),
    ]
    first = extract_references_in_node_expressions(nodes, ["A", "B", "C", "D"], START)
    second = extract_references_in_node_expressions(nodes, ["A", "B", "C", "D"], START)

    assert first == second


def test_start_node_name_with_quote_is_escaped():
    nodes = [make_node("B", ['$("A").item.json.myField'])]
    result = extract_references_in_node_expressions(nodes, ["A", "B"], "O'Brien")

    assert params(result) == {"p0": "={{ $('O\\'Brien').item.json.myField }}"}


def test_field_without_identifier_characters_falls_back_to_node_name():
    nodes = [make_node("B", ['$("A").item.json["名前"]'])]
    result = extract_references_in_node_expressions(nodes, ["A", "B"], START)

    assert list(result.variables.items()) == [("A", '$("A").item.json["名前"]')]
    assert params(result) == {"p0": "={{ $('Start').item.json.A }}"}


def test_node_name_without_identifier_characters_gets_a_usable_key():
    nodes = [make_node("B", ['$("🚀").first().json["名前"]', '$("🚀").item.toJsonObject()'])]
    result = extract_references_in_node_expressions(nodes, ["🚀", "B"], START)

    assert list(result.variables.items()) == [
        ("value_first", '$("🚀").first().json["名前"]'),
        ("value", '$("🚀").item'),
    ]
    assert params(result) == {
        "p0": "={{ $('Start').first().json.value_first }}",
        "p1": "={{ $('Start').item.json.value.toJsonObject() }}",
    }
