"""
dojocho - Pull training packs into a practice project.

A pack is a bundle of katas plus a ``pack.json`` descriptor. ``dojo add``
classifies the source, fetches it into a staging directory, validates
it, installs it under the packs root and wires it into the project's
tooling (tsconfig, coding agent directories).
"""

__version__ = "0.4.0"
