"""Helpers for Wiktionary wiki markup in raw glosses."""

from __future__ import annotations

import re
import string

ANNOTATION = re.compile(r"\{\{([^\}]+)\}\}")
MARKUP = re.compile(r"\[\[([^\]]+)\]\]")
TRAILING_PUNCT = re.compile(f"[{re.escape(string.punctuation)}]+$")

# Column holding the value of an annotation; everything else uses column 1.
TAG_OFFSETS = {"surname": 0, "form of": 2}

_PASSTHROUGH_TEMPLATES = ("taxlink", "term|", "w|", "unsupported|", "gloss|")


def strip_annotations(gloss: str) -> str:
    return ANNOTATION.sub("", gloss).strip()


def _replace_template(m: re.Match) -> str:
    match = m.group(1)
    arr = match.split("|")
    if match.startswith("soplink|"):
        return " ".join(arr[1:])
    if match.startswith(_PASSTHROUGH_TEMPLATES) and len(arr) > 1:
        return arr[1]
    if match.startswith("non-gloss definition"):
        return arr[1] if len(arr) > 1 else arr[0]
    return " "


def clean_gloss(gloss: str, remove_markup: bool = True) -> str:
    """Turn a raw wiki gloss into plain text."""
    gloss = ANNOTATION.sub(_replace_template, gloss)
    gloss = re.sub("[“”]", '"', gloss)
    gloss = gloss.replace("<ref name=SOED/>", "").strip()
    if not remove_markup:
        return gloss
    gloss = MARKUP.sub(lambda m: m.group(1).split("|")[-1], gloss)
    return gloss.strip()


def extract_annotations(gloss: str) -> list[str]:
    """The bodies of the ``{{...}}`` templates that open a gloss."""
    annotations = []
    gloss = gloss.strip()
    while gloss.startswith("{{"):
        i = gloss.find("}}")
        if i < 0:
            break
        annotations.append(gloss[2:i])
        gloss = gloss[i + 2:].strip()
    return annotations


def extract_annotation_values(annotations: list[str]) -> dict[str, str]:
    """Map each annotation's tag to the column holding its value."""
    type_to_value: dict[str, str] = {}
    for annotation in annotations:
        cols = annotation.split("|")
        tag_type = cols[0].strip()
        if len(cols) < 2:
            continue
        col = TAG_OFFSETS.get(tag_type, 1)
        if col >= len(cols):
            continue
        value = cols[col]
        while ("=" in value or "{" in value) and col < len(cols) - 1:
            col += 1
            value = cols[col]
        type_to_value[tag_type] = value
    return type_to_value
