from taco.pipeline.fields import (
    CheckboxField,
    DropdownField,
    Option,
    StaticTextField,
    TextareaField,
    TextField,
)
from taco.pipeline.render import (
    RenderMode,
    RenderNode,
    render_field,
    render_form_html,
    render_tag,
)


def _ids(node: RenderNode):
    return [n.attrs["id"] for n in node.walk() if "id" in n.attrs]


def test_text_live_and_export_ids():
    f = TextField(id="callerName", label="Caller Name", required=True, placeholder="Full name")
    live = render_field(f, RenderMode.LIVE)
    export = render_field(f, RenderMode.EXPORT)

    assert "preview-callerName" in _ids(live)
    assert "callerName" in _ids(export)
    label = live.find_all(lambda n: n.tag == "label")[0]
    assert label.text == "Caller Name *"
    assert label.attrs["for"] == "preview-callerName"
    inp = live.find_all(lambda n: n.tag == "input")[0]
    assert inp.attrs["data-bind"] == "callerName"
    assert "data-bind" not in export.find_all(lambda n: n.tag == "input")[0].attrs


def test_textarea_rows():
    node = render_field(TextareaField(id="notes", label="Notes"), RenderMode.EXPORT)
    ta = node.find_all(lambda n: n.tag == "textarea")[0]
    assert ta.attrs["rows"] == 3
    assert "<textarea" in node.to_html()


def test_static_text_has_no_input_and_tooltip_markup():
    f = StaticTextField(id="tip", label="Read the script", hover_info="*Be* polite")
    node = render_field(f)
    assert not node.find_all(lambda n: n.tag in ("input", "textarea"))
    tooltip = node.find_all(lambda n: n.attrs.get("class") == "tooltip-text")[0]
    assert tooltip.raw_html == "<strong>Be</strong> polite"


def test_static_text_without_hover_has_no_icon():
    node = render_field(StaticTextField(id="tip", label="Heads up"))
    assert not node.find_all(lambda n: n.attrs.get("class") == "info-icon")


def test_checkbox_ids_derived_from_option_values():
    f = CheckboxField(id="issues", label="Issues", options=[Option(value="No Signal"), Option(value="Billing")])
    node = render_field(f, RenderMode.LIVE)
    assert node.tag == "fieldset"
    assert node.attrs["data-field-id"] == "issues"
    boxes = node.find_all(lambda n: n.attrs.get("type") == "checkbox")
    assert [b.attrs["id"] for b in boxes] == ["preview-issues-noSignal", "preview-issues-billing"]
    assert all(b.attrs["name"] == "issues" for b in boxes)


def test_single_dropdown_structure():
    f = DropdownField(id="topic", label="Topic", options=[Option(value="A"), Option(value="B")])
    node = render_field(f, RenderMode.EXPORT)
    search = node.find_all(lambda n: n.attrs.get("id") == "search-input-for-topic")[0]
    assert search.attrs["placeholder"] == "Search and select..."
    hidden = node.find_all(lambda n: n.attrs.get("type") == "hidden")[0]
    assert hidden.attrs["id"] == "topic"
    options = node.find_all(lambda n: n.attrs.get("class") == "searchable-select-option")
    assert [o.attrs["data-value"] for o in options] == ["A", "B"]
    assert not node.find_all(lambda n: n.attrs.get("data-action") == "add-tag")


def test_multi_dropdown_structure():
    f = DropdownField(id="products", label="Products", is_multi_select=True, placeholder="Select Products...")
    node = render_field(f, RenderMode.LIVE)
    actions = [n.attrs["data-action"] for n in node.walk() if "data-action" in n.attrs]
    assert actions == ["add-tag", "remove-all-tags"]
    assert node.find_all(lambda n: n.attrs.get("id") == "tags-for-products")
    hidden = node.find_all(lambda n: n.attrs.get("type") == "hidden")[0]
    assert hidden.attrs["id"] == "preview-products"
    search = node.find_all(lambda n: n.attrs.get("class") == "searchable-select-input")[0]
    assert search.attrs["placeholder"] == "Select Products..."


def test_unknown_type_falls_back_to_text():
    class Odd(TextField):
        pass

    node = render_field(Odd(id="x", label="X"), RenderMode.EXPORT)
    assert node.find_all(lambda n: n.tag == "input" and n.attrs.get("type") == "text")


def test_html_escapes_labels_and_attributes():
    f = TextField(id="x", label="<script>", placeholder='say "hi"')
    html = render_form_html([f])
    assert "<script>" not in html
    assert "&lt;script&gt;" in html
    assert 'placeholder="say &quot;hi&quot;"' in html


def test_render_tag():
    f = DropdownField(id="products", label="Products", is_multi_select=True)
    tag = render_tag("Widget", f)
    assert tag.attrs == {"class": "tag", "data-value": "Widget"}
    assert tag.children[0].attrs["data-action"] == "remove-tag"


def test_to_dict_shape():
    d = render_field(TextField(id="a", label="A")).to_dict()
    assert d["tag"] == "div"
    assert d["children"][0]["tag"] == "label"
    assert d["children"][0]["text"] == "A"
