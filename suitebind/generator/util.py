"""Naming helpers for generated documentation."""

import re

# (name fragment, description, wire type the fragment must have or None)
_PARAM_HINTS = [
    ("art", "Handle to the art object", "number"),
    ("layer", "Handle to the layer", "number"),
    ("doc", "Handle to the document", None),
    ("index", "The index value", None),
    ("name", "The name string", None),
    ("bounds", "The bounding rectangle", None),
    ("rect", "The bounding rectangle", None),
    ("point", "The point coordinates", None),
    ("matrix", "The transformation matrix", None),
    ("color", "The color value", None),
    ("order", "The order position", None),
    ("prep", "The prepositional object reference", None),
    ("count", "The count value", None),
    ("visible", "The visibility flag", None),
    ("lock", "The lock state", None),
    ("select", "The selection state", None),
]

# (verb prefixes, description template); {rest} is the remainder in words
_FUNCTION_HINTS = [
    (("Get",), "Retrieves the {rest} of an object."),
    (("Set",), "Sets the {rest} of an object."),
    (("New", "Create"), "Creates a new {rest}."),
    (("Delete", "Dispose", "Remove"), "Removes the {rest}."),
    (("Count",), "Counts the number of {rest} objects."),
    (("Lock",), "Locks the object."),
    (("Unlock",), "Unlocks the object."),
    (("Show",), "Shows the object."),
    (("Hide",), "Hides the object."),
    (("Deselect",), "Deselects the object."),
    (("Select",), "Selects the object."),
    (("Move",), "Moves the object."),
    (("Copy",), "Copies the object."),
    (("Duplicate",), "Duplicates the object."),
    (("Transform", "Rotate", "Scale", "Translate"), "Applies a transformation to the object."),
    (("Insert", "Add"), "Adds a new item."),
    (("Update", "Refresh"), "Updates the object state."),
]


def camel_to_words(name: str) -> str:
    """Split a camel-case identifier: "GetArtBounds" -> "Get Art Bounds"."""
    words = re.sub(r"(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])", " ", name)
    words = words.replace("_", " ").strip()
    return words[:1].upper() + words[1:]


def describe_function(name: str) -> str:
    """One-line description of a function derived from its verb prefix."""
    if name.startswith(("Has", "Is")):
        return f"Checks if {camel_to_words(name).lower()}."
    for prefixes, template in _FUNCTION_HINTS:
        for prefix in prefixes:
            if name.startswith(prefix):
                rest = camel_to_words(name[len(prefix) :]).lower()
                if not rest:
                    return template.replace(" {rest}", " object")
                return template.format(rest=rest)
    return f"Performs the {camel_to_words(name).lower()} operation."


def describe_value(name: str, wire_type: str) -> str:
    """Description of a parameter or result from its name."""
    lowered = name.lower()
    if lowered == "type":
        return "The type value"
    for fragment, description, required in _PARAM_HINTS:
        if fragment in lowered and (required is None or required == wire_type):
            return description
    if wire_type == "boolean":
        return "True if the condition is met, false otherwise"
    return f"The {camel_to_words(name).lower()} value"
