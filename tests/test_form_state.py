import pytest

from taco.editor.form_state import FormState
from taco.errors import FormValidationError, InvalidOptionError
from taco.pipeline.fields import CheckboxField, DropdownField, Option, StaticTextField, TextField


def _fields():
    return [
        TextField(id="name", label="Name"),
        StaticTextField(id="hint", label="Be nice"),
        DropdownField(id="topic", label="Topic", options=[Option(value="Billing"), Option(value="Outage")]),
        DropdownField(
            id="products",
            label="Products",
            is_multi_select=True,
            options=[Option(value="Router"), Option(value="Modem")],
        ),
        CheckboxField(id="flags", label="Flags", options=[Option(value="Urgent"), Option(value="VIP")]),
    ]


def test_initial_output():
    state = FormState(_fields())
    assert state.output == "Name: N/A\nTopic: N/A\nProducts: N/A\nFlags: None"


def test_every_change_refreshes_output():
    seen = []
    state = FormState(_fields(), on_change=seen.append)
    state.set_text("name", "Ann")
    state.toggle("flags", "VIP")
    assert seen[-1] == state.output
    assert state.output == "Name: Ann\nTopic: N/A\nProducts: N/A\nFlags: VIP"


def test_checkbox_values_follow_option_order():
    state = FormState(_fields())
    state.toggle("flags", "VIP")
    state.toggle("flags", "Urgent")
    assert state.values()["flags"] == ["Urgent", "VIP"]
    state.toggle("flags", "VIP", False)
    assert state.values()["flags"] == ["Urgent"]


def test_single_dropdown_choose_and_typing_invalidates():
    state = FormState(_fields())
    state.choose("topic", "Billing")
    assert state.values()["topic"] == "Billing"
    state.type_query("topic", "Bill")
    assert state.values()["topic"] == ""
    assert "Topic: N/A" in state.output


def test_choose_rejects_non_option():
    state = FormState(_fields())
    with pytest.raises(InvalidOptionError):
        state.choose("topic", "Other")


def test_multi_select_add_remove_clear():
    state = FormState(_fields())
    state.choose("products", "Router")
    assert state.tags("products") == []
    assert state.add_tag("products") is True
    state.type_query("products", "Modem")
    state.add_tag("products")
    assert state.values()["products"] == ["Router", "Modem"]
    assert "Products: Router,Modem" in state.output

    state.type_query("products", "Router")
    assert state.add_tag("products") is False
    assert state.tags("products") == ["Router", "Modem"]

    state.remove_tag("products", "Router")
    assert state.tags("products") == ["Modem"]
    state.clear_tags("products")
    assert state.tags("products") == []


def test_multi_select_invalid_add_changes_nothing():
    state = FormState(_fields())
    state.type_query("products", "Router")
    state.add_tag("products")
    before = state.output
    state.type_query("products", "Toaster")
    with pytest.raises(InvalidOptionError) as exc:
        state.add_tag("products")
    assert str(exc.value) == '"Toaster" is not a valid option.'
    assert state.tags("products") == ["Router"]
    assert state.output == before


def test_empty_add_is_noop():
    state = FormState(_fields())
    state.type_query("products", "   ")
    assert state.add_tag("products") is False
    assert state.tags("products") == []


def test_visible_options():
    state = FormState(_fields())
    state.type_query("products", "o")
    assert state.visible_options("products") == ["Router", "Modem"]
    state.type_query("products", "Router")
    state.add_tag("products")
    assert state.visible_options("products") == ["Modem"]
    state.type_query("topic", "OUT")
    assert state.visible_options("topic") == ["Outage"]


def test_static_fields_are_not_addressable():
    state = FormState(_fields())
    with pytest.raises(KeyError):
        state.set_text("hint", "x")


def test_clear_resets_everything():
    state = FormState(_fields())
    state.set_text("name", "Ann")
    state.choose("topic", "Outage")
    state.toggle("flags", "Urgent")
    state.clear()
    assert state.output == "Name: N/A\nTopic: N/A\nProducts: N/A\nFlags: None"


def test_fill_applies_submitted_values():
    state = FormState(_fields())
    state.fill({"name": "Ann", "topic": "Outage", "products": "Router,Modem", "flags": ["VIP"]})
    assert state.output == "Name: Ann\nTopic: Outage\nProducts: Router,Modem\nFlags: VIP"
    assert state.log_data() == {"name": "Ann", "topic": "Outage", "products": "Router,Modem", "flags": ["VIP"]}


def test_fill_rejects_unknown_field_and_bad_option():
    state = FormState(_fields())
    with pytest.raises(FormValidationError):
        state.fill({"nope": "x"})
    with pytest.raises(InvalidOptionError):
        state.fill({"flags": ["Nope"]})
