"""Pre-built weekly menus with their macro split.

A template is skipped when one of its excluded allergens appears in the
user's allergy list.
"""
import logging
from typing import Iterable, List, Optional

from fitplan.models.plan_models import (
    WEEK_DAYS,
    DailyNutrition,
    DietType,
    GoalType,
    MacroDistribution,
    Meal,
    NutritionTemplate,
    Recipe,
)

logger = logging.getLogger(__name__)


def _meal(name, calories, protein, carbs, fat, description, ingredients, steps, prep, cook, substitutions):
    return Meal(
        name=name,
        calories=calories,
        protein=protein,
        carbs=carbs,
        fat=fat,
        description=description,
        ingredients=ingredients,
        recipe=Recipe(instructions=steps, prep_time=prep, cook_time=cook),
        substitutions=substitutions,
    )


def _week(day_menus: List[List[Meal]]) -> List[DailyNutrition]:
    """Spread a short rotation of daily menus over Monday to Sunday."""
    week = []
    for index, day in enumerate(WEEK_DAYS):
        meals = [meal.model_copy(deep=True) for meal in day_menus[index % len(day_menus)]]
        week.append(DailyNutrition(
            day=day,
            total_calories=sum(meal.calories for meal in meals),
            protein=sum(meal.protein for meal in meals),
            carbs=sum(meal.carbs for meal in meals),
            fat=sum(meal.fat for meal in meals),
            meals=meals,
        ))
    return week


_FAT_LOSS_OMNIVORE_A = [
    _meal("Breakfast", 450, 30, 50, 14, "Oats with banana, walnuts and whey",
          ["oats", "banana", "walnuts", "whey protein", "milk"],
          ["Cook 50 g oats in 200 ml milk", "Slice in one banana", "Stir in 30 g whey", "Top with 15 g chopped walnuts"],
          5, 5, ["Quinoa instead of oats", "Almonds instead of walnuts"]),
    _meal("Lunch", 550, 45, 55, 17, "Grilled chicken, brown rice and steamed vegetables",
          ["chicken breast", "brown rice", "broccoli", "carrot", "olive oil"],
          ["Grill 150 g chicken breast", "Boil 80 g brown rice", "Steam broccoli and carrot", "Dress with olive oil"],
          10, 25, ["Turkey instead of chicken", "Quinoa instead of rice"]),
    _meal("Snack", 300, 28, 25, 9, "Greek yogurt with berries and almonds",
          ["greek yogurt", "strawberries", "blueberries", "almonds"],
          ["Serve 200 g greek yogurt", "Add 100 g berries", "Add 15 g almonds"],
          2, 0, ["Cottage cheese instead of yogurt", "Walnuts instead of almonds"]),
    _meal("Dinner", 500, 55, 28, 20, "Baked salmon with sweet potato and green salad",
          ["salmon", "sweet potato", "lettuce", "tomato", "olive oil"],
          ["Bake 150 g salmon at 180 C for 15 min", "Roast 150 g sliced sweet potato", "Toss lettuce and tomato", "Dress with olive oil"],
          10, 20, ["Tuna instead of salmon", "Pumpkin instead of sweet potato"]),
]

_FAT_LOSS_OMNIVORE_B = [
    _meal("Breakfast", 420, 32, 38, 15, "Scrambled eggs on wholegrain toast with spinach",
          ["eggs", "egg whites", "wholegrain bread", "spinach"],
          ["Whisk 2 eggs with 100 ml egg whites", "Scramble with spinach", "Serve on 2 slices of toast"],
          5, 5, ["Tofu scramble instead of eggs"]),
    _meal("Lunch", 560, 48, 60, 14, "Turkey and quinoa bowl with roasted peppers",
          ["turkey breast", "quinoa", "red pepper", "zucchini", "olive oil"],
          ["Cook 80 g quinoa", "Pan-sear 150 g turkey", "Roast peppers and zucchini", "Combine and dress"],
          10, 20, ["Chicken instead of turkey", "Couscous instead of quinoa"]),
    _meal("Snack", 290, 24, 30, 8, "Cottage cheese with pineapple",
          ["cottage cheese", "pineapple", "pumpkin seeds"],
          ["Serve 200 g cottage cheese", "Top with pineapple and seeds"],
          2, 0, ["Skyr instead of cottage cheese"]),
    _meal("Dinner", 530, 54, 30, 23, "Lean beef stir-fry with vegetables and rice noodles",
          ["lean beef", "rice noodles", "broccoli", "bok choy", "sesame oil"],
          ["Slice 150 g beef thinly", "Stir-fry with vegetables", "Toss with 50 g cooked noodles"],
          10, 15, ["Shrimp instead of beef"]),
]

_MUSCLE_GAIN_OMNIVORE_A = [
    _meal("Breakfast", 650, 40, 85, 16, "Oats with whey, banana and peanut butter",
          ["oats", "whey protein", "banana", "peanut butter", "milk"],
          ["Cook 80 g oats in milk", "Stir in 30 g whey", "Top with banana and 15 g peanut butter"],
          5, 5, ["Almond butter instead of peanut butter"]),
    _meal("Mid-morning", 400, 30, 50, 9, "Turkey wholegrain sandwich and an apple",
          ["wholegrain bread", "turkey slices", "lettuce", "apple"],
          ["Fill 2 slices of bread with 100 g turkey and lettuce", "Serve with an apple"],
          5, 0, ["Chicken instead of turkey"]),
    _meal("Lunch", 750, 55, 90, 19, "Chicken, white rice and avocado",
          ["chicken breast", "white rice", "avocado", "mixed vegetables"],
          ["Grill 200 g chicken", "Cook 120 g rice", "Serve with half an avocado and vegetables"],
          10, 25, ["Beef instead of chicken"]),
    _meal("Afternoon", 350, 30, 35, 10, "Greek yogurt, granola and berries",
          ["greek yogurt", "granola", "berries"],
          ["Layer 250 g yogurt with 40 g granola and berries"],
          2, 0, ["Skyr instead of yogurt"]),
    _meal("Dinner", 650, 55, 55, 24, "Salmon with potatoes and green beans",
          ["salmon", "potatoes", "green beans", "olive oil"],
          ["Bake 180 g salmon", "Roast 250 g potatoes", "Steam green beans"],
          10, 30, ["Trout instead of salmon"]),
]

_MUSCLE_GAIN_OMNIVORE_B = [
    _meal("Breakfast", 640, 42, 70, 21, "Egg omelette with toast and orange juice",
          ["eggs", "cheese", "wholegrain bread", "orange juice"],
          ["Make a 3 egg omelette with 20 g cheese", "Serve with 2 slices of toast and a glass of juice"],
          5, 10, ["Egg whites for part of the eggs"]),
    _meal("Mid-morning", 420, 30, 55, 9, "Protein smoothie with oats and berries",
          ["whey protein", "oats", "berries", "milk"],
          ["Blend 30 g whey, 40 g oats, berries and 300 ml milk"],
          5, 0, ["Plant protein instead of whey"]),
    _meal("Lunch", 740, 55, 85, 20, "Beef chili with rice",
          ["lean beef mince", "kidney beans", "tomato", "white rice"],
          ["Brown 180 g beef", "Simmer with beans and tomato", "Serve over 100 g rice"],
          10, 30, ["Turkey mince instead of beef"]),
    _meal("Afternoon", 360, 28, 40, 10, "Rice cakes with cottage cheese and honey",
          ["rice cakes", "cottage cheese", "honey"],
          ["Top 4 rice cakes with 200 g cottage cheese and honey"],
          2, 0, ["Quark instead of cottage cheese"]),
    _meal("Dinner", 640, 55, 65, 17, "Chicken pasta with tomato sauce",
          ["chicken breast", "wholegrain pasta", "tomato sauce", "parmesan"],
          ["Cook 100 g pasta", "Pan-fry 180 g chicken", "Combine with sauce and parmesan"],
          10, 20, ["Turkey instead of chicken"]),
]

_FAT_LOSS_VEGETARIAN_A = [
    _meal("Breakfast", 400, 25, 52, 11, "Oats with fruit, chia seeds and plant protein",
          ["oats", "banana", "chia seeds", "plant protein", "almond milk"],
          ["Cook 50 g oats in almond milk", "Add a banana", "Add 15 g chia seeds", "Stir in 25 g plant protein"],
          5, 5, ["Quinoa instead of oats", "Soy milk"]),
    _meal("Lunch", 500, 30, 65, 14, "Quinoa with chickpeas, vegetables and avocado",
          ["quinoa", "chickpeas", "broccoli", "avocado", "olive oil"],
          ["Cook 100 g quinoa", "Add 120 g cooked chickpeas", "Steam the broccoli", "Add half an avocado"],
          10, 20, ["Lentils instead of chickpeas", "Brown rice instead of quinoa"]),
    _meal("Snack", 300, 28, 22, 11, "Cottage cheese with berries and walnuts",
          ["cottage cheese", "strawberries", "blueberries", "walnuts"],
          ["Serve 200 g cottage cheese", "Add 100 g berries", "Add 15 g walnuts"],
          2, 0, ["Plant yogurt", "Almonds instead of walnuts"]),
    _meal("Dinner", 500, 45, 31, 21, "Tofu stir-fry with vegetables and brown rice",
          ["tofu", "broccoli", "carrot", "brown rice", "olive oil"],
          ["Stir-fry 200 g tofu", "Stir-fry broccoli and carrot", "Serve with 60 g cooked brown rice"],
          10, 15, ["Tempeh instead of tofu", "Quinoa instead of rice"]),
]

_FAT_LOSS_VEGETARIAN_B = [
    _meal("Breakfast", 410, 30, 45, 12, "Greek yogurt parfait with oats and seeds",
          ["greek yogurt", "oats", "pumpkin seeds", "raspberries"],
          ["Layer 250 g yogurt with 30 g oats, seeds and raspberries"],
          5, 0, ["Soy yogurt instead of greek yogurt"]),
    _meal("Lunch", 490, 32, 60, 13, "Lentil and vegetable soup with wholegrain bread",
          ["red lentils", "carrot", "celery", "tomato", "wholegrain bread"],
          ["Simmer 80 g lentils with the vegetables for 25 min", "Serve with a slice of bread"],
          10, 25, ["Split peas instead of lentils"]),
    _meal("Snack", 290, 22, 28, 10, "Edamame and an apple",
          ["edamame", "apple"],
          ["Steam 150 g edamame", "Serve with an apple"],
          2, 5, ["Roasted chickpeas instead of edamame"]),
    _meal("Dinner", 510, 44, 37, 21, "Egg and vegetable frittata with salad",
          ["eggs", "egg whites", "spinach", "peppers", "feta", "lettuce"],
          ["Whisk 3 eggs with egg whites", "Bake with vegetables and feta for 20 min", "Serve with salad"],
          10, 20, ["Tofu instead of eggs"]),
]


NUTRITION_TEMPLATES = [
    NutritionTemplate(
        id="fat-loss-omnivore-4",
        goal=GoalType.FAT_LOSS,
        diet_type=DietType.OMNIVORE,
        meals_per_day=4,
        daily_calories=1800,
        macro_distribution=MacroDistribution(protein=35, carbs=35, fat=30),
        weekly_menu=_week([_FAT_LOSS_OMNIVORE_A, _FAT_LOSS_OMNIVORE_B]),
        excluded_allergens=[],
    ),
    NutritionTemplate(
        id="muscle-gain-omnivore-5",
        goal=GoalType.MUSCLE_GAIN,
        diet_type=DietType.OMNIVORE,
        meals_per_day=5,
        daily_calories=2800,
        macro_distribution=MacroDistribution(protein=30, carbs=45, fat=25),
        weekly_menu=_week([_MUSCLE_GAIN_OMNIVORE_A, _MUSCLE_GAIN_OMNIVORE_B]),
        excluded_allergens=["gluten", "dairy"],
    ),
    NutritionTemplate(
        id="fat-loss-vegetarian-4",
        goal=GoalType.FAT_LOSS,
        diet_type=DietType.VEGETARIAN,
        meals_per_day=4,
        daily_calories=1700,
        macro_distribution=MacroDistribution(protein=30, carbs=40, fat=30),
        weekly_menu=_week([_FAT_LOSS_VEGETARIAN_A, _FAT_LOSS_VEGETARIAN_B]),
        excluded_allergens=["nuts"],
    ),
]


def _normalize(items: Iterable[str]) -> set:
    return {item.strip().lower() for item in items}


def find_matching_nutrition_template(
    goal: GoalType,
    diet_type: DietType,
    meals_per_day: int,
    allergies: Iterable[str] = (),
) -> Optional[NutritionTemplate]:
    allergy_set = _normalize(allergies)
    for template in NUTRITION_TEMPLATES:
        if (
            template.goal == goal
            and template.diet_type == diet_type
            and template.meals_per_day == meals_per_day
            and not (_normalize(template.excluded_allergens) & allergy_set)
        ):
            logger.debug("Nutrition template %s matched", template.id)
            return template
    return None
