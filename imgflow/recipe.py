"""
Recipes: a YAML description of the tasks to queue on a Pipeline.

    steps:
      - to_square: 300
      - rotate: {degrees: 15, background: white}
      - to_grayscale
      - draw_text: {xy: [10, 290], text: hello, style: {font: serif bold 24px, fill: red}}
    export:
      mime_type: image/png

A step is a builder name, or a one-key mapping from a builder name to its
arguments (a mapping of keyword arguments, a list of positional arguments,
or a single positional argument). Loaders and exports are not steps.
"""

import logging

import yaml

from .constants import C

STEP_NAMES = frozenset(['to_square', 'resize', 'crop', 'rotate', 'center_in_rectangle', 'to_circle',
                        'perspective', 'to_grayscale', 'pixelize', 'gaussian_blur',
                        'draw_line', 'draw_polygon', 'draw_rectangle', 'draw_text'])
# steps whose first argument is itself a list of points
POINT_STEPS = frozenset(['perspective', 'draw_line', 'draw_polygon', 'draw_rectangle', 'draw_text'])


def load_recipe(path):
    with open(path) as f:
        recipe = yaml.safe_load(f)
    return validate_recipe(recipe)


def loads_recipe(text):
    return validate_recipe(yaml.safe_load(text))


class Recipe:
    """Parsed recipe. steps are (name, args, kwargs) triples; export holds mime_type and quality."""
    def __init__(self, steps, export):
        self.steps  = steps
        self.export = export

    def __repr__(self):
        return f"<Recipe {[name for (name, _, _) in self.steps]} export={self.export}>"


def validate_recipe(recipe):
    """Return a Recipe from the YAML data: a mapping with steps and export, or just a list of steps"""
    if isinstance(recipe, Recipe):
        return recipe
    if recipe is None:
        recipe = {}
    if isinstance(recipe, list):
        recipe = {'steps': recipe}
    if not isinstance(recipe, dict):
        raise ValueError(f"a recipe must be a mapping, not {type(recipe).__name__}")
    unknown = set(recipe) - {'steps', 'export'}
    if unknown:
        raise ValueError(f"unknown recipe sections: {sorted(unknown)}")
    steps = recipe.get('steps') or []
    if not isinstance(steps, list):
        raise ValueError("recipe steps must be a list")
    export = {'mime_type': C.DEFAULT_MIME_TYPE, 'quality': C.DEFAULT_QUALITY}
    export.update(recipe.get('export') or {})
    return Recipe([parse_step(step) for step in steps], export)


def parse_step(step):
    """Returns (name, args, kwargs)"""
    if isinstance(step, str):
        (name, value) = (step, None)
    elif isinstance(step, dict) and len(step) == 1:
        ((name, value),) = step.items()
    else:
        raise ValueError(f"a recipe step must be a name or a one-key mapping, not {step!r}")
    if name not in STEP_NAMES:
        raise ValueError(f"unknown recipe step {name!r}; must be one of " + " ".join(sorted(STEP_NAMES)))
    if value is None:
        return (name, (), {})
    if isinstance(value, dict) and not (name == 'perspective' and 'points' not in value):
        return (name, (), value)
    if isinstance(value, list) and name not in POINT_STEPS:
        return (name, tuple(value), {})
    return (name, (value,), {})


def apply_recipe(pipeline, recipe):
    """Queue every step of the recipe on pipeline. Returns the pipeline."""
    for (name, args, kwargs) in validate_recipe(recipe).steps:
        logging.debug("recipe step %s %s %s", name, args, kwargs)
        getattr(pipeline, name)(*args, **kwargs)
    return pipeline
