"""
Relay Data Models
Defines the stored record shapes and their row mappings
"""

from dataclasses import dataclass, field
from typing import Optional

from config import SENTINEL, MEAL_SLOTS, EXERCISE_SLOTS


def _sentinel_list() -> list[str]:
    return [SENTINEL]


@dataclass
class PreferenceRecord:
    """Structured preferences extracted from one user prompt"""
    ingredients_to_include: list[str] = field(default_factory=_sentinel_list)
    ingredients_to_exclude: list[str] = field(default_factory=_sentinel_list)
    dietary_preference: str = SENTINEL
    body_part_trained: str = SENTINEL
    meal_preference: str = SENTINEL
    id: Optional[int] = None
    created_at: Optional[str] = None

    def to_row(self) -> dict:
        """Columns written on insert; id and created_at belong to the store"""
        return {
            "ingredients_to_include": self.ingredients_to_include,
            "ingredients_to_exclude": self.ingredients_to_exclude,
            "dietary_preference": self.dietary_preference,
            "body_part_trained": self.body_part_trained,
            "meal_preference": self.meal_preference,
        }

    def to_dict(self) -> dict:
        return {"id": self.id, **self.to_row(), "created_at": self.created_at}

    @classmethod
    def from_dict(cls, data: dict) -> "PreferenceRecord":
        return cls(
            ingredients_to_include=data.get("ingredients_to_include") or _sentinel_list(),
            ingredients_to_exclude=data.get("ingredients_to_exclude") or _sentinel_list(),
            dietary_preference=data.get("dietary_preference") or SENTINEL,
            body_part_trained=data.get("body_part_trained") or SENTINEL,
            meal_preference=data.get("meal_preference") or SENTINEL,
            id=data.get("id"),
            created_at=data.get("created_at"),
        )


@dataclass
class RecipeSummary:
    """Recipe card kept in meal_data, keyed by the Spoonacular id"""
    id: int
    title: str = ""
    image: str = ""
    likes: Optional[int] = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "image": self.image,
            "likes": self.likes
        }

    @classmethod
    def from_dict(cls, data: dict) -> "RecipeSummary":
        return cls(
            id=data["id"],
            title=data.get("title", ""),
            image=data.get("image", ""),
            likes=data.get("likes")
        )


@dataclass
class ExerciseSummary:
    """Exercise kept in exercise_data, keyed by the ExerciseDB id"""
    id: str
    body_part: str = ""
    equipment: str = ""
    gif_url: str = ""
    name: str = ""
    target: str = ""
    secondary_muscles: list[str] = field(default_factory=list)
    instructions: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "body_part": self.body_part,
            "equipment": self.equipment,
            "gif_url": self.gif_url,
            "name": self.name,
            "target": self.target,
            "secondary_muscles": self.secondary_muscles,
            "instructions": self.instructions
        }

    def to_api_dict(self) -> dict:
        """Same fields in the camelCase shape ExerciseDB clients expect"""
        return {
            "id": self.id,
            "bodyPart": self.body_part,
            "equipment": self.equipment,
            "gifUrl": self.gif_url,
            "name": self.name,
            "target": self.target,
            "secondaryMuscles": self.secondary_muscles,
            "instructions": self.instructions
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ExerciseSummary":
        return cls(
            id=str(data["id"]),
            body_part=data.get("body_part", ""),
            equipment=data.get("equipment", ""),
            gif_url=data.get("gif_url", ""),
            name=data.get("name", ""),
            target=data.get("target", ""),
            secondary_muscles=data.get("secondary_muscles") or [],
            instructions=data.get("instructions") or []
        )


@dataclass
class NutritionSummary:
    """Single-food nutrient snapshot from Nutritionix"""
    food_name: str
    serving_qty: Optional[float] = None
    serving_unit: Optional[str] = None
    calories: Optional[float] = None
    total_fat: Optional[float] = None
    saturated_fat: Optional[float] = None
    cholesterol: Optional[float] = None
    sodium: Optional[float] = None
    total_carbohydrate: Optional[float] = None
    dietary_fiber: Optional[float] = None
    sugars: Optional[float] = None
    protein: Optional[float] = None
    potassium: Optional[float] = None
    image_url: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "food_name": self.food_name,
            "serving_qty": self.serving_qty,
            "serving_unit": self.serving_unit,
            "calories": self.calories,
            "total_fat": self.total_fat,
            "saturated_fat": self.saturated_fat,
            "cholesterol": self.cholesterol,
            "sodium": self.sodium,
            "total_carbohydrate": self.total_carbohydrate,
            "dietary_fiber": self.dietary_fiber,
            "sugars": self.sugars,
            "protein": self.protein,
            "potassium": self.potassium,
            "image_url": self.image_url
        }


@dataclass
class Selection:
    """
    Ranked ids linked to the preference record that produced them.
    Subclasses fix the slot count and the column the ids live in.
    """
    preference_id: Optional[int]
    item_ids: list

    slots = 0
    ids_column = "item_ids"

    def to_row(self) -> dict:
        if len(self.item_ids) != self.slots:
            raise ValueError(
                f"{type(self).__name__} needs exactly {self.slots} ids, got {len(self.item_ids)}"
            )
        return {"preference_id": self.preference_id, self.ids_column: list(self.item_ids)}


@dataclass
class MealSelection(Selection):
    slots = MEAL_SLOTS
    ids_column = "meal_ids"


@dataclass
class ExerciseSelection(Selection):
    slots = EXERCISE_SLOTS
    ids_column = "exercise_ids"
