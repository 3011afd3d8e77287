import pytest

from app.models.schemas import Ingredient, RecipeStep
from app.services.draft import (
    DraftInvalid,
    coerce_ingredient,
    coerce_step,
    fallback_draft,
    repair_draft,
)

from conftest import TIKKA


@pytest.mark.parametrize(
    "raw,expected",
    (
        ("2 cups all purpose flour", Ingredient(name="all purpose flour", quantity="2", unit="cups")),
        ("3 large eggs", Ingredient(name="eggs", quantity="3", unit="large")),
        ("salt", Ingredient(name="salt", quantity="1", unit="piece")),
        ("black pepper", Ingredient(name="black pepper", quantity="1", unit="piece")),
        ({"name": "butter"}, Ingredient(name="butter", quantity="1", unit="piece")),
        ({"quantity": 2, "unit": "tbsp"}, Ingredient(name="Unknown ingredient", quantity="2", unit="tbsp")),
        ({"name": "milk", "quantity": "", "unit": None}, Ingredient(name="milk", quantity="1", unit="piece")),
    ),
)
def test_coerce_ingredient(raw, expected):
    assert coerce_ingredient(raw) == expected


@pytest.mark.parametrize("raw", ("   ", 7, None, ["2", "cups"]))
def test_coerce_ingredient_rejects(raw):
    with pytest.raises(DraftInvalid):
        coerce_ingredient(raw)


def test_coerce_step_forms():
    assert coerce_step("Boil water") == RecipeStep(description="Boil water")
    assert coerce_step({"description": "Bake", "timeMinutes": 25}) == RecipeStep(description="Bake", timeMinutes=25)
    assert coerce_step({"description": "Rest", "timeMinutes": "5"}).timeMinutes == 5
    assert coerce_step({"description": "Stir", "timeMinutes": "a while"}).timeMinutes is None


@pytest.mark.parametrize("raw", ({"timeMinutes": 5}, {"description": ""}, {"description": 3}, ""))
def test_step_without_description_is_not_repairable(raw):
    with pytest.raises(DraftInvalid):
        coerce_step(raw)


def test_repair_mixed_payload():
    draft = repair_draft({
        "ingredients": ["2 cups rice", {"name": "water", "quantity": 4, "unit": "cups"}],
        "steps": ["Rinse the rice", {"description": "Simmer covered", "timeMinutes": 18}],
        "difficulty": "Easy",
        "estimatedTime": 25,
    })
    assert draft.ingredients[0] == Ingredient(name="rice", quantity="2", unit="cups")
    assert draft.ingredients[1].quantity == "4"
    assert draft.steps[0].timeMinutes is None
    assert draft.steps[1].timeMinutes == 18
    # servings 누락 → 4
    assert draft.servings == 4
    assert draft.error is None


def test_repair_is_noop_on_well_formed_draft():
    draft = repair_draft(TIKKA)
    assert repair_draft(draft.model_dump()) == draft
    assert repair_draft(draft.model_dump(exclude_none=True)) == draft


def test_repair_keeps_duplicates_and_order():
    draft = repair_draft({**TIKKA, "ingredients": ["1 tsp salt", "2 tsp salt"]})
    assert [i.quantity for i in draft.ingredients] == ["1", "2"]


@pytest.mark.parametrize(
    "patch",
    (
        {"ingredients": []},
        {"ingredients": None},
        {"steps": []},
        {"steps": [{"timeMinutes": 3}]},
        {"difficulty": ""},
        {"difficulty": None},
        {"estimatedTime": "45 minutes"},
        {"estimatedTime": True},
        {"estimatedTime": -5},
    ),
)
def test_repair_rejects_broken_contract(patch):
    with pytest.raises(DraftInvalid):
        repair_draft({**TIKKA, **patch})


def test_repair_rejects_non_object():
    with pytest.raises(DraftInvalid):
        repair_draft(["not", "a", "recipe"])


def test_fallback_draft_shape():
    draft = fallback_draft("boom")
    assert draft.difficulty == "Unknown"
    assert draft.estimatedTime == 0
    assert draft.servings == 1
    assert draft.error == "boom"
    assert len(draft.ingredients) == 1 and len(draft.steps) == 1
    assert draft.is_fallback
