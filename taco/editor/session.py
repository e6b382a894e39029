"""
Editor session: one blueprint being edited, its live preview form and its logs.

The session owns the working Blueprint. Storage only ever sees snapshots, and
a loaded record is parsed into a fresh model, so nothing the store holds can be
mutated through the editor. Structural edits (fields added, changed, removed or
moved) rebuild the preview form from scratch, which drops entered values.

Failures are raised as taco.errors types after being passed to notify(), the
host's transient notification hook.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, timezone
from typing import Callable, List, Optional, Tuple

from taco.editor.form_state import FormState
from taco.editor.store import Store
from taco.errors import (
    ConfirmationRequired,
    FormValidationError,
    MissingIdentityError,
    NotFoundError,
    PersistenceError,
)
from taco.pipeline import export, history
from taco.pipeline.fields import (
    DEFAULT_OPTION_GROUP,
    TEXT,
    BaseField,
    Blueprint,
    DropdownField,
    LogEntry,
    Option,
    StaticTextField,
    blank_field,
    find_duplicate_ids,
    is_static,
)
from taco.pipeline.identifiers import derive_id
from taco.pipeline.render import RenderMode, RenderNode, render_form, render_tag, slot_id, tags_container_id
from taco.pipeline.template import compile_template

log = logging.getLogger("taco.session")

Notify = Callable[[str, bool], None]


class FieldEditor:
    """Draft of one field. Nothing reaches the blueprint until commit()."""

    def __init__(self, session: "EditorSession", field: BaseField, index: Optional[int] = None):
        self.session = session
        self.field = field.model_copy(deep=True)
        self.index = index

    @property
    def options(self) -> List[Option]:
        return getattr(self.field, "options", [])

    def _options(self) -> List[Option]:
        if not hasattr(self.field, "options"):
            raise TypeError(f"{self.field.type} fields have no options")
        return self.field.options

    def add_option(self, value: str, group: str = "") -> bool:
        value = (value or "").strip()
        if not value:
            return False
        self._options().append(Option(group=(group or "").strip() or DEFAULT_OPTION_GROUP, value=value))
        return True

    def add_bulk_options(self, text: str, group: str = "") -> int:
        """One option per non-blank line. Returns the number added."""
        return sum(1 for line in (text or "").splitlines() if self.add_option(line, group))

    def remove_option(self, index: int) -> Option:
        return self._options().pop(index)

    def clear_options(self, confirmed: bool = False) -> None:
        opts = self._options()
        if opts and not confirmed:
            raise ConfirmationRequired("clear all options")
        opts.clear()

    def build(
        self,
        label: str,
        required: Optional[bool] = None,
        placeholder: Optional[str] = None,
        is_multi_select: Optional[bool] = None,
        hover_info: Optional[str] = None,
    ) -> BaseField:
        label = (label or "").strip()
        if not label:
            raise FormValidationError("Field Label cannot be empty.")

        f = self.field.model_copy(deep=True)
        f.label = label
        f.id = derive_id(label)
        if required is not None:
            f.required = bool(required)

        if isinstance(f, StaticTextField):
            f.required = False
            f.hover_info = (hover_info or "").strip() or None
        elif isinstance(f, DropdownField):
            if is_multi_select is not None:
                f.is_multi_select = bool(is_multi_select)
            f.placeholder = f"Select {label}..."
        elif placeholder is not None and hasattr(f, "placeholder"):
            f.placeholder = placeholder
        return f

    def commit(self, label: str, **kwargs) -> BaseField:
        return self.session.commit_field(self, label, **kwargs)


class EditorSession:
    def __init__(
        self,
        store: Store,
        notify: Optional[Notify] = None,
        clipboard: Optional[Callable[[str], None]] = None,
        blueprint: Optional[Blueprint] = None,
    ):
        self.store = store
        self.notify = notify
        self.clipboard = clipboard
        self.on_output: Optional[Callable[[str], None]] = None
        self._use(blueprint or Blueprint())

    # -- state ---------------------------------------------------------

    def _use(self, blueprint: Blueprint) -> None:
        self.blueprint = blueprint
        self._rebuild()

    def _rebuild(self) -> None:
        self.form = FormState(self.blueprint.fields, on_change=self._output_changed)
        self._output_changed(self.form.output)

    def _output_changed(self, output: str) -> None:
        if self.on_output is not None:
            self.on_output(output)

    @property
    def output(self) -> str:
        return self.form.output

    @property
    def template(self) -> str:
        return compile_template(self.blueprint.fields)

    def render(self, mode: RenderMode = RenderMode.LIVE) -> List[RenderNode]:
        """Form tree. The live tree also carries the tags accepted so far."""
        nodes = render_form(self.blueprint.fields, mode)
        if mode != RenderMode.LIVE:
            return nodes
        for f, node in zip(self.blueprint.fields, nodes):
            if not (isinstance(f, DropdownField) and f.is_multi_select):
                continue
            tags = self.form.tags(f.id)
            for n in node.walk():
                if n.attrs.get("id") == tags_container_id(f):
                    n.children = [render_tag(t, f) for t in tags]
                elif n.attrs.get("id") == slot_id(f, mode):
                    n.attrs["value"] = ",".join(tags)
        return nodes

    def _notify(self, message: str, is_error: bool = False) -> None:
        if is_error:
            log.warning("notify error=%s", message)
        else:
            log.info("notify message=%s", message)
        if self.notify is not None:
            self.notify(message, is_error)

    def _fail(self, exc: Exception) -> None:
        self._notify(str(exc), True)
        raise exc

    def _persist(self, action: str, fn, *args):
        try:
            return fn(*args)
        except Exception as e:
            log.exception("store_failed action=%s", action)
            err = PersistenceError(action, e)
            self._notify(f"Error {action}.", True)
            raise err from e

    # -- blueprints ----------------------------------------------------

    def new(self) -> Blueprint:
        self._use(Blueprint())
        return self.blueprint

    def blueprints(self) -> List[Tuple[str, str]]:
        """(id, title) of every stored blueprint, ordered by title."""
        rows = self._persist("loading blueprints", self.store.list_blueprints)
        return [(r["id"], r.get("formName") or "") for r in rows]

    def load(self, blueprint_id: str) -> Blueprint:
        record = self._persist("loading blueprint", self.store.get_blueprint, blueprint_id)
        if record is None:
            self._fail(NotFoundError(f"Blueprint {blueprint_id} not found."))
        self._use(Blueprint.from_record(record))
        log.info("blueprint_load id=%s fields=%s", blueprint_id, len(self.blueprint.fields))
        return self.blueprint

    def set_title(self, title: str) -> None:
        self.blueprint.title = title

    def set_subtitle(self, subtitle: str) -> None:
        self.blueprint.subtitle = subtitle

    def save(self) -> str:
        title = (self.blueprint.title or "").strip()
        if not title:
            self._fail(FormValidationError("Please provide a Form Name before saving."))
        dupes = find_duplicate_ids(self.blueprint.fields)
        if dupes:
            self._fail(FormValidationError(f"Field labels must be unique. Duplicate id: {', '.join(dupes)}"))

        record = self.blueprint.snapshot()
        record["formName"] = title
        blueprint_id = self._persist("saving blueprint", self.store.save_blueprint, record)
        # identity is only assigned once the store accepted the record
        self.blueprint.id = blueprint_id
        log.info("blueprint_save id=%s title=%s", blueprint_id, title)
        self._notify("Blueprint saved successfully!")
        return blueprint_id

    def duplicate(self) -> Blueprint:
        if not self.blueprint.id:
            self._fail(MissingIdentityError("Please load a blueprint to duplicate."))
        self._use(self.blueprint.duplicate())
        self._notify("Blueprint duplicated. Save it to keep the copy.")
        return self.blueprint

    def delete(self, confirmed: bool = False) -> None:
        if not self.blueprint.id:
            self._fail(MissingIdentityError("Please load a blueprint to delete."))
        if not confirmed:
            raise ConfirmationRequired("delete blueprint")
        self._persist("deleting blueprint", self.store.delete_blueprint, self.blueprint.id)
        log.info("blueprint_delete id=%s", self.blueprint.id)
        self._notify("Blueprint deleted.")
        self.new()

    def import_json(self, text: str) -> Blueprint:
        return self._import(export.import_json, text)

    def import_data(self, data) -> Blueprint:
        """Like import_json, for an already parsed document."""
        return self._import(export.import_blueprint, data)

    def _import(self, parse, source) -> Blueprint:
        try:
            bp = parse(source)
        except FormValidationError as e:
            self._fail(e)
        self._use(bp)
        self._notify("Blueprint imported successfully!")
        return self.blueprint

    def export_json(self) -> Tuple[str, str]:
        return export.export_filename(self.blueprint, "json"), export.export_json(self.blueprint)

    def export_html(self) -> Tuple[str, str]:
        return export.export_filename(self.blueprint, "html"), export.export_html(self.blueprint)

    # -- fields --------------------------------------------------------

    def edit_field(self, index: Optional[int] = None, field_type: str = TEXT) -> FieldEditor:
        """Editor for the field at index, or for a new field of field_type."""
        if index is None:
            return FieldEditor(self, blank_field(field_type))
        return FieldEditor(self, self.blueprint.fields[index], index)

    def commit_field(self, editor: FieldEditor, label: str, **kwargs) -> BaseField:
        try:
            f = editor.build(label, **kwargs)
        except FormValidationError as e:
            self._fail(e)

        if not is_static(f):
            for i, other in enumerate(self.blueprint.fields):
                if i != editor.index and not is_static(other) and other.id == f.id:
                    self._fail(FormValidationError(f'A field with the id "{f.id}" already exists. Use a different label.'))

        if editor.index is None:
            self.blueprint.fields.append(f)
        else:
            self.blueprint.fields[editor.index] = f
        log.info("field_commit id=%s type=%s index=%s", f.id, f.type, editor.index)
        self._rebuild()
        return f

    def delete_field(self, index: int, confirmed: bool = False) -> BaseField:
        if not confirmed:
            raise ConfirmationRequired("delete field")
        removed = self.blueprint.fields.pop(index)
        self._rebuild()
        return removed

    def move_field(self, old_index: int, new_index: int) -> None:
        fields = self.blueprint.fields
        f = fields.pop(old_index)
        fields.insert(new_index, f)
        self._rebuild()

    # -- logs ----------------------------------------------------------

    def commit_log(self, now: Optional[datetime] = None) -> LogEntry:
        """Store the current output, copy it to the clipboard, then clear the form."""
        if not self.blueprint.id:
            self._fail(MissingIdentityError("Please save the blueprint before logging cases."))
        output = self.form.output
        if not output:
            self._fail(FormValidationError("Output is empty, nothing to log."))

        entry = LogEntry(
            blueprint_id=self.blueprint.id,
            timestamp=now or datetime.now(timezone.utc),
            data=self.form.log_data(),
            full_output=output,
        )
        entry.id = self._persist("logging case", self.store.add_log, entry.snapshot())
        log.info("log_commit id=%s blueprint_id=%s", entry.id, entry.blueprint_id)

        if self.clipboard is None:
            self._notify("Case logged!")
        else:
            try:
                self.clipboard(output)
            except Exception as e:
                log.warning("clipboard_failed error=%s", e)
                self._notify("Case logged, but copying to the clipboard failed.", True)
            else:
                self._notify("Copied to clipboard and logged!")

        self.form.clear()
        return entry

    def copy_log(self, entry: LogEntry) -> bool:
        """Copy a stored log's output again. Returns True if the clipboard took it."""
        if self.clipboard is None:
            self._notify("Clipboard is not available.", True)
            return False
        try:
            self.clipboard(entry.full_output)
        except Exception as e:
            log.warning("clipboard_failed log_id=%s error=%s", entry.id, e)
            self._notify("Copying to the clipboard failed.", True)
            return False
        self._notify("Copied to clipboard!")
        return True

    def _log_entries(self, since: Optional[datetime] = None) -> List[LogEntry]:
        if not self.blueprint.id:
            return []
        rows = self._persist("loading logs", self.store.list_logs, self.blueprint.id, since)
        return [LogEntry.model_validate(r) for r in rows]

    def logs(self, search: str = "") -> List[LogEntry]:
        return history.filter_logs(self._log_entries(), search)

    def log_title(self, entry: LogEntry) -> str:
        return history.log_title(self.blueprint.fields, entry)

    def cases_today(self, now: Optional[datetime] = None) -> int:
        now = now or datetime.now()
        if now.tzinfo is None:
            now = now.astimezone()
        since = history.start_of_day(now)
        return history.count_since(self._log_entries(since=since), since)

    def delete_log(self, log_id: str, confirmed: bool = False) -> None:
        if not confirmed:
            raise ConfirmationRequired("delete log")
        self._persist("deleting log", self.store.delete_log, log_id)
        self._notify("Log entry deleted.")

    def download_csv(self, today: Optional[date] = None) -> Tuple[str, str]:
        if not self.blueprint.id:
            self._fail(MissingIdentityError("Please save and select a blueprint to download its logs."))
        entries = self._log_entries()
        if not entries:
            self._fail(FormValidationError("No logs for this blueprint to download."))
        return history.csv_filename(today), history.csv_export(self.blueprint.fields, entries)
