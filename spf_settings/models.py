"""Pydantic models for settings documents, sections, tabs and fields."""

from __future__ import annotations

from typing import Any, Iterator, List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from spf_settings.keys import derive_key

GROUP_TYPE = "group"


def _as_identifier(value: Any) -> Any:
    # YAML happily produces integer ids; keys are always strings.
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return value


class FieldSpec(BaseModel):
    """One configurable input.

    Unknown keys (widget options such as ``timepicker`` or ``max_width``) are
    kept as extra attributes and handed to the renderer untouched.
    """

    id: str = Field(default="", description="Identifier, unique in its section or group")
    title: str = Field(default="", description="Label shown next to the input")
    subtitle: str = Field(default="", description="Secondary label shown after the title")
    description: str = Field(default="", alias="desc", description="Help text (HTML)")
    type: Optional[str] = Field(default="text", description="Field type tag")
    default: Any = Field(default=None, description="Value used when nothing is stored")
    choices: dict[str, Any] = Field(
        default_factory=dict,
        description="Ordered mapping of accepted value -> label",
    )
    placeholder: str = Field(default="", description="Input placeholder")
    css_class: str = Field(default="", alias="class", description="Extra CSS classes")
    subfields: List["FieldSpec"] = Field(
        default_factory=list,
        description="Row template of a group field",
    )
    sanitize_override: Optional[str] = Field(
        default=None,
        alias="sanitize",
        description="Named sanitizer, or 'no' to store the raw value",
    )

    model_config = {
        "extra": "allow",
        "populate_by_name": True,
    }

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> Any:
        if value is None:
            return ""
        return _as_identifier(value)

    @field_validator("type", mode="before")
    @classmethod
    def _normalize_type(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().lower()
        return value

    @field_validator("choices", mode="before")
    @classmethod
    def _normalize_choices(cls, value: Any) -> Any:
        if value is None:
            return {}
        if isinstance(value, dict):
            return {str(_as_identifier(key)): label for key, label in value.items()}
        return value

    @property
    def is_group(self) -> bool:
        return self.type == GROUP_TYPE

    @property
    def choice_keys(self) -> list[str]:
        return list(self.choices.keys())

    def widget_options(self) -> dict[str, Any]:
        """Extra, type-specific keys supplied by the configuration."""
        return dict(self.model_extra or {})


class SectionSpec(BaseModel):
    """A named grouping of fields, optionally attached to a tab."""

    section_id: str = Field(default="", description="Identifier of the section")
    title: str = Field(default="", alias="section_title")
    description: str = Field(default="", alias="section_description")
    order: Optional[int] = Field(default=None, alias="section_order")
    tab_id: Optional[str] = Field(default=None, description="Owning tab (tabbed mode)")
    fields: List[FieldSpec] = Field(default_factory=list)

    model_config = {
        "extra": "ignore",
        "populate_by_name": True,
    }

    @field_validator("section_id", "tab_id", mode="before")
    @classmethod
    def _coerce_ids(cls, value: Any) -> Any:
        return _as_identifier(value)


class TabSpec(BaseModel):
    id: str
    title: str = ""

    model_config = {"extra": "ignore"}

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> Any:
        return _as_identifier(value)


class SettingsDocument(BaseModel):
    """
    Normalized settings definition for one option group.

    Invariants checked on construction:
    - at least one section, each with a section_id;
    - in tabbed mode every section references a declared tab;
    - storage keys are unique across the document;
    - subfield ids are unique inside each group.
    """

    option_group: str = Field(min_length=1)
    sections: List[SectionSpec]
    tabs: List[TabSpec] = Field(default_factory=list)
    has_tabs: bool = False

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def _validate_structure(self) -> "SettingsDocument":
        if not self.sections:
            raise ValueError("settings document has no sections")

        tab_ids = {tab.id for tab in self.tabs}
        for index, section in enumerate(self.sections):
            if not section.section_id:
                raise ValueError(f"section #{index} has no section_id")
            if section.tab_id and not self.has_tabs:
                raise ValueError(
                    f"section '{section.section_id}' declares tab_id in a tabless document"
                )
            if self.has_tabs and section.tab_id not in tab_ids:
                raise ValueError(
                    f"section '{section.section_id}' references unknown tab "
                    f"'{section.tab_id}'"
                )

        seen: dict[str, str] = {}
        for section, field in self.iter_fields():
            key = self.storage_key(section, field)
            if key in seen:
                raise ValueError(
                    f"duplicate storage key '{key}' "
                    f"(sections '{seen[key]}' and '{section.section_id}')"
                )
            seen[key] = section.section_id
            if field.is_group:
                sub_ids = [sub.id for sub in field.subfields if sub.id]
                if len(sub_ids) != len(set(sub_ids)):
                    raise ValueError(f"group '{key}' has duplicate subfield ids")
        return self

    def iter_fields(self) -> Iterator[tuple[SectionSpec, FieldSpec]]:
        """Yield `(section, field)` for every top-level field that has an id."""
        for section in self.sections:
            for field in section.fields:
                if field.id:
                    yield section, field

    def storage_key(self, section: SectionSpec, field: FieldSpec) -> str:
        return derive_key(self.has_tabs, section.tab_id, section.section_id, field.id)

    def storage_keys(self) -> list[str]:
        return [self.storage_key(section, field) for section, field in self.iter_fields()]

    def sections_for_tab(self, tab_id: str) -> list[SectionSpec]:
        return [section for section in self.sections if section.tab_id == tab_id]


FieldSpec.model_rebuild()
