"""
Blueprint export and import.

- JSON: the blueprint record without its storage id, pretty-printed.
- HTML: one standalone document that reproduces the in-app preview. It embeds
  the compiled template and the field list as JSON, the form markup from the
  renderer in EXPORT mode, and a script whose output routine mirrors
  taco.pipeline.template exactly (single-pass replacement, same sentinels).
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Dict

import chevron
from pydantic import ValidationError

from taco.errors import ImportFormatError
from taco.pipeline.fields import DEFAULT_SUBTITLE, Blueprint
from taco.pipeline.render import RenderMode, render_form_html
from taco.pipeline.template import NONE_CHECKED, NOT_ANSWERED, compile_template

log = logging.getLogger("taco.export")


def export_filename(blueprint: Blueprint, ext: str) -> str:
    fallback = "taco_blueprint" if ext == "json" else "taco_export"
    stem = re.sub(r"\s", "_", blueprint.title or "") or fallback
    return f"{stem}.{ext}"


def export_json(blueprint: Blueprint) -> str:
    return json.dumps(blueprint.snapshot(include_id=False), indent=2, ensure_ascii=False)


def import_blueprint(data: Any) -> Blueprint:
    """Validate an imported blueprint document. Nothing is imported on failure."""
    if not isinstance(data, dict) or not isinstance(data.get("formName"), str) or not isinstance(data.get("fields"), list):
        raise ImportFormatError("Invalid blueprint format. Missing formName or fields array.")
    subtitle = data.get("formSubtitle")
    if subtitle is not None and not isinstance(subtitle, str):
        raise ImportFormatError("Invalid blueprint format. formSubtitle must be a string.")
    try:
        bp = Blueprint(id=None, title=data["formName"], subtitle=subtitle if subtitle is not None else DEFAULT_SUBTITLE, fields=data["fields"])
    except ValidationError as e:
        raise ImportFormatError(f"Invalid blueprint format. {e.error_count()} invalid field value(s).") from e
    log.info("blueprint_import title=%s fields=%s", bp.title, len(bp.fields))
    return bp


def import_json(text: str) -> Blueprint:
    try:
        data = json.loads(text)
    except (TypeError, ValueError) as e:
        raise ImportFormatError("Import failed. File may be corrupt or not a valid blueprint.") from e
    return import_blueprint(data)


def script_json(value: Any) -> str:
    """JSON that is also safe to place inside a <script> element."""
    return (
        json.dumps(value, ensure_ascii=False)
        .replace("&", "\\u0026")
        .replace("<", "\\u003c")
        .replace(">", "\\u003e")
        .replace("\u2028", "\\u2028")
        .replace("\u2029", "\\u2029")
    )


def export_html(blueprint: Blueprint) -> str:
    record = blueprint.snapshot(include_id=False)
    context: Dict[str, Any] = {
        "title": blueprint.title,
        "subtitle": blueprint.subtitle,
        "form_html": render_form_html(blueprint.fields, RenderMode.EXPORT),
        "template_json": script_json(compile_template(blueprint.fields)),
        "fields_json": script_json(record["fields"]),
        "not_answered_json": script_json(NOT_ANSWERED),
        "none_checked_json": script_json(NONE_CHECKED),
    }
    log.info("blueprint_export_html title=%s fields=%s", blueprint.title, len(blueprint.fields))
    # [[ ]] delimiters keep the literal {{id}} placeholders in the script intact
    return chevron.render(DOCUMENT_TEMPLATE, context, def_ldel="[[", def_rdel="]]")


DOCUMENT_TEMPLATE = """<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>[[ title ]]</title>
    <style>
        :root { --bg-dark: #282c34; --bg-light: #3a3f4b; --border-color: #4a505e; --text-primary: #e6e6e6; --text-secondary: #b3b3b3; --accent-color: #61afef; --danger-color: #e06c75; }
        body { background-color: var(--bg-dark); color: var(--text-primary); font-family: -apple-system, BlinkMacSystemFont, "Segoe UI", Roboto, Helvetica, Arial, sans-serif; margin: 0; padding: 2rem; display: flex; justify-content: center; box-sizing: border-box; }
        .container { max-width: 800px; width: 100%; }
        .form-container, .output-container { background-color: var(--bg-light); padding: 2rem; border-radius: 8px; margin-bottom: 2rem; }
        .form-group { margin-bottom: 1.5rem; }
        label, legend { display: block; margin-bottom: 0.5rem; font-weight: bold; color: var(--text-secondary); }
        input[type="text"], textarea { width: 100%; padding: 0.75rem; border-radius: 4px; border: 1px solid var(--border-color); background-color: var(--bg-dark); color: var(--text-primary); font-size: 1rem; box-sizing: border-box; }
        .checkbox-group { display: flex; flex-wrap: wrap; gap: 10px 20px; padding-top: 0.5rem; }
        .checkbox-group div { display: flex; align-items: center; gap: 8px; }
        .checkbox-group label { font-weight: normal; margin: 0; }
        .label-wrapper { display: flex; align-items: center; gap: 8px; margin-bottom: 1.5rem; }
        .static-text-element { color: var(--text-secondary); font-style: italic; margin: 0; flex-grow: 1; padding: 0.75rem; background-color: var(--bg-dark); border-radius: 4px; border-left: 3px solid var(--accent-color); }
        .info-icon { position: relative; display: inline-flex; align-items: center; justify-content: center; width: 18px; height: 18px; border-radius: 50%; background-color: var(--border-color); color: var(--bg-dark); font-weight: bold; font-size: 0.8em; cursor: help; flex-shrink: 0; }
        .info-icon .tooltip-text { visibility: hidden; width: 250px; background-color: var(--bg-dark); color: var(--text-primary); text-align: left; border-radius: 8px; padding: 10px 15px; position: absolute; z-index: 10; bottom: 140%; left: 50%; transform: translateX(-50%); opacity: 0; transition: opacity 0.3s; font-weight: normal; white-space: pre-wrap; }
        .info-icon:hover .tooltip-text { visibility: visible; opacity: 1; }
        .info-icon .tooltip-text a { color: var(--accent-color); }
        .searchable-select-container { position: relative; flex-grow: 1; }
        .searchable-select-options { display: none; position: absolute; z-index: 5; left: 0; right: 0; max-height: 200px; overflow-y: auto; background-color: var(--bg-dark); border: 1px solid var(--border-color); border-radius: 4px; }
        .searchable-select-container.active .searchable-select-options { display: block; }
        .searchable-select-option { padding: 0.5rem 0.75rem; cursor: pointer; }
        .searchable-select-option:hover { background-color: var(--bg-light); }
        .tag-selector-input-group { display: flex; gap: 10px; }
        .tag-area-wrapper { display: flex; align-items: flex-start; gap: 10px; margin-top: 10px; }
        .tag-container { flex-grow: 1; display: flex; flex-wrap: wrap; gap: 8px; padding: 8px; background-color: var(--bg-dark); border-radius: 8px; min-height: 40px; border: 1px solid var(--border-color); }
        .tag { background-color: var(--accent-color); color: var(--bg-dark); padding: 5px 10px; border-radius: 15px; display: flex; align-items: center; gap: 8px; font-size: 0.9em; font-weight: bold; }
        .tag button { background: none; border: none; color: var(--bg-dark); cursor: pointer; padding: 0; font-size: 1.2em; line-height: 1; }
        .remove-all-tags-btn { padding: 5px 10px; font-size: 0.8em; font-weight: normal; background-color: transparent; color: var(--text-secondary); border: 1px solid var(--border-color); }
        pre { white-space: pre-wrap; word-wrap: break-word; background-color: var(--bg-dark); padding: 1rem; border-radius: 4px; min-height: 150px; }
        .button-group { display: flex; gap: 1rem; }
        button { padding: 0.75rem 1.5rem; border: none; border-radius: 4px; cursor: pointer; font-size: 1rem; font-weight: bold; }
        .primary { background-color: var(--accent-color); color: var(--bg-dark); }
        .secondary { background-color: var(--bg-light); color: var(--text-primary); border: 1px solid var(--border-color); }
        .form-header { text-align: center; margin-bottom: 2rem; }
        .form-header h1 { color: var(--accent-color); margin-bottom: 0.5rem; }
        .notification { position: fixed; bottom: 20px; left: 50%; transform: translateX(-50%); padding: 0.75rem 1.5rem; border-radius: 4px; color: var(--bg-dark); background-color: var(--accent-color); opacity: 0; transition: opacity 0.3s; pointer-events: none; }
        .notification.error { background-color: var(--danger-color); }
        .notification.show { opacity: 1; }
    </style>
</head>
<body>
<div class="container">
    <div class="form-header">
        <h1>[[ title ]]</h1>
        <p>[[ subtitle ]]</p>
    </div>
    <div id="taco-form" class="form-container">
[[& form_html ]]
    </div>
    <div class="output-container">
        <h2>Output</h2>
        <pre id="taco-output"></pre>
    </div>
    <div class="button-group">
        <button id="taco-copy-btn" class="primary">Copy Output</button>
        <button id="taco-clear-btn" class="secondary">Clear Form</button>
    </div>
</div>
<div id="taco-notification" class="notification"></div>
<script>
document.addEventListener('DOMContentLoaded', () => {
    const form = document.getElementById('taco-form');
    const preview = document.getElementById('taco-output');
    const notification = document.getElementById('taco-notification');
    const outputTemplate = [[& template_json ]];
    const fields = [[& fields_json ]];
    const NOT_ANSWERED = [[& not_answered_json ]];
    const NONE_CHECKED = [[& none_checked_json ]];

    function findField(fieldId) {
        return fields.find(f => f.id === fieldId);
    }

    function valueSlot(fieldId) {
        return document.getElementById(fieldId);
    }

    function showNotification(message, isError) {
        notification.textContent = message;
        notification.classList.toggle('error', !!isError);
        notification.classList.add('show');
        setTimeout(() => notification.classList.remove('show'), 3000);
    }

    // Value readers by field type; anything unknown reads like a text input.
    const valueReaders = {
        'checkbox': (field) => Array.from(form.querySelectorAll('input[type="checkbox"]'))
            .filter(cb => cb.name === field.id && cb.checked)
            .map(cb => cb.value),
        'text': (field) => {
            const el = valueSlot(field.id);
            return el ? el.value : '';
        }
    };

    function resolveValue(field, raw) {
        if (field.type === 'checkbox') {
            return raw.length > 0 ? raw.join(', ') : NONE_CHECKED;
        }
        return raw.trim() === '' ? NOT_ANSWERED : raw;
    }

    function escapeRegExp(s) {
        return s.replace(/[.*+?^$(){}|[\\]\\\\]/g, '\\\\$&');
    }

    function generateOutput() {
        const resolved = new Map();
        fields.forEach(field => {
            if (field.type === 'static-text') return;
            const token = '{{' + field.id + '}}';
            if (resolved.has(token)) return;
            const reader = valueReaders[field.type] || valueReaders['text'];
            resolved.set(token, resolveValue(field, reader(field)));
        });
        let output = outputTemplate;
        if (resolved.size > 0) {
            const tokens = Array.from(resolved.keys())
                .sort((a, b) => b.length - a.length)
                .map(escapeRegExp);
            output = outputTemplate.replace(new RegExp(tokens.join('|'), 'g'), m => resolved.get(m));
        }
        preview.textContent = output;
    }

    function currentTags(fieldId) {
        const slot = valueSlot(fieldId);
        return slot && slot.value ? slot.value.split(',') : [];
    }

    function setTags(fieldId, tags) {
        const slot = valueSlot(fieldId);
        const container = document.getElementById('tags-for-' + fieldId);
        slot.value = tags.join(',');
        container.replaceChildren(...tags.map(value => {
            const tag = document.createElement('span');
            tag.className = 'tag';
            tag.dataset.value = value;
            tag.appendChild(document.createTextNode(value));
            const remove = document.createElement('button');
            remove.type = 'button';
            remove.dataset.action = 'remove-tag';
            remove.dataset.fieldId = fieldId;
            remove.textContent = '\\u00d7';
            tag.appendChild(remove);
            return tag;
        }));
        generateOutput();
    }

    function filterOptions(container) {
        const input = container.querySelector('.searchable-select-input');
        const fieldId = container.dataset.fieldId;
        const isMulti = !!container.closest('.tag-selector-input-group');
        const selected = isMulti ? currentTags(fieldId) : [];
        const filterText = input.value.toLowerCase();
        container.querySelectorAll('.searchable-select-option').forEach(option => {
            const visible = option.textContent.toLowerCase().includes(filterText) && !selected.includes(option.dataset.value);
            option.style.display = visible ? '' : 'none';
        });
    }

    document.addEventListener('click', (e) => {
        const active = document.querySelector('.searchable-select-container.active');
        if (active && active !== e.target.closest('.searchable-select-container')) {
            active.classList.remove('active');
        }
    });

    form.addEventListener('focusin', (e) => {
        const input = e.target.closest('.searchable-select-input');
        if (!input) return;
        const container = input.closest('.searchable-select-container');
        container.classList.add('active');
        filterOptions(container);
    });

    form.addEventListener('input', (e) => {
        const input = e.target.closest('.searchable-select-input');
        if (input) {
            const container = input.closest('.searchable-select-container');
            if (!container.closest('.tag-selector-input-group')) {
                // typing invalidates the selection until an option is chosen again
                valueSlot(container.dataset.fieldId).value = '';
            }
            filterOptions(container);
        }
        generateOutput();
    });

    form.addEventListener('click', (e) => {
        const option = e.target.closest('.searchable-select-option');
        const addButton = e.target.closest('button[data-action="add-tag"]');
        const removeButton = e.target.closest('button[data-action="remove-tag"]');
        const clearButton = e.target.closest('button[data-action="remove-all-tags"]');

        if (option) {
            const container = option.closest('.searchable-select-container');
            const input = container.querySelector('.searchable-select-input');
            input.value = option.dataset.value;
            container.classList.remove('active');
            if (container.closest('.tag-selector-input-group')) {
                container.closest('.tag-selector-input-group').querySelector('button[data-action="add-tag"]').focus();
            } else {
                valueSlot(container.dataset.fieldId).value = option.dataset.value;
                generateOutput();
            }
        }

        if (addButton) {
            const fieldId = addButton.dataset.fieldId;
            const input = document.getElementById('search-input-for-' + fieldId);
            const value = input.value.trim();
            if (!value) return;
            const field = findField(fieldId);
            const valid = field && (field.options || []).some(opt => opt.value === value);
            if (!valid) {
                showNotification('"' + value + '" is not a valid option.', true);
                return;
            }
            const tags = currentTags(fieldId);
            if (!tags.includes(value)) {
                setTags(fieldId, tags.concat([value]));
            }
            input.value = '';
            input.focus();
        }

        if (removeButton) {
            const fieldId = removeButton.dataset.fieldId;
            const value = removeButton.closest('.tag').dataset.value;
            setTags(fieldId, currentTags(fieldId).filter(v => v !== value));
        }

        if (clearButton) {
            setTags(clearButton.dataset.fieldId, []);
        }
    });

    document.getElementById('taco-copy-btn').addEventListener('click', () => {
        navigator.clipboard.writeText(preview.textContent).then(
            () => showNotification('Copied to clipboard!', false),
            () => showNotification('Failed to copy.', true)
        );
    });

    document.getElementById('taco-clear-btn').addEventListener('click', () => {
        form.querySelectorAll('input, textarea').forEach(el => {
            if (el.type === 'checkbox') el.checked = false;
            else el.value = '';
        });
        form.querySelectorAll('.tag-container').forEach(c => c.replaceChildren());
        generateOutput();
    });

    generateOutput();
});
</script>
</body>
</html>
"""
