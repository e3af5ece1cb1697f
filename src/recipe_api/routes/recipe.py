from typing import Dict
from urllib.parse import quote

from fastapi import APIRouter, HTTPException
from fastapi.responses import Response

from recipe_api.db.recipe import (
    DuplicateRecipeName,
    RecipeNotFound,
    UnknownRecipeAuthor,
    create_recipe as create_recipe_in_db,
    delete_recipe as delete_recipe_from_db,
    get_recipe as get_recipe_from_db,
    list_recipe_names as list_recipe_names_from_db,
    search_recipes_by_name as search_recipes_by_name_from_db,
    update_recipe as update_recipe_in_db,
)
from recipe_api.models import RecipeRequest, RecipeTextRequest
from recipe_api.recipe_text import RecipeTextError, parse_recipe_text
from recipe_api.utils.logging import logger
from recipe_api.utils.pdf import render_recipe_pdf

router = APIRouter()


def _require_recipe_fields(request: RecipeRequest) -> None:
    if not all(
        value and value.strip()
        for value in (request.name, request.ingredients, request.instructions)
    ):
        raise HTTPException(
            status_code=400,
            detail="Please provide name, ingredients, and instructions",
        )


def _content_disposition(name: str) -> str:
    ascii_name = name.encode("ascii", "replace").decode("ascii").replace('"', "'")
    return (
        f'attachment; filename="{ascii_name}.pdf"; '
        f"filename*=UTF-8''{quote(name + '.pdf')}"
    )


@router.get("/names")
async def get_recipe_names() -> Dict:
    """List every recipe as an {id, name} pair"""
    names = await list_recipe_names_from_db()
    return {
        "success": True,
        "data": names,
        "message": "Recipe names retrieved successfully",
    }


@router.get("/search")
async def search_recipe_by_name(name: str = "") -> Dict:
    """Case-insensitive substring search on recipe names"""
    if not name.strip():
        raise HTTPException(status_code=400, detail="Search term is required")

    recipes = await search_recipes_by_name_from_db(name)
    if not recipes:
        raise HTTPException(
            status_code=404, detail="No recipes found matching your search"
        )

    return {"success": True, "data": recipes, "message": "Recipes found"}


@router.post("/parse")
async def parse_recipe(request: RecipeTextRequest) -> Dict:
    """Split a recipe text block into name, ingredients and instructions"""
    try:
        parsed = parse_recipe_text(request.text or "")
    except RecipeTextError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return {
        "success": True,
        "data": parsed._asdict(),
        "message": "Recipe text parsed successfully",
    }


@router.get("/{recipe_id}")
async def get_recipe(recipe_id: int) -> Dict:
    recipe = await get_recipe_from_db(recipe_id)
    if not recipe:
        raise HTTPException(status_code=404, detail="Recipe not found!")

    return {
        "success": True,
        "data": recipe,
        "message": "Recipe retrieved successfully!",
    }


@router.get("/{recipe_id}/download")
async def download_recipe(recipe_id: int) -> Response:
    """Render the recipe as a PDF attachment named after the recipe"""
    recipe = await get_recipe_from_db(recipe_id)
    if not recipe:
        raise HTTPException(status_code=404, detail="Recipe not found!")

    pdf_bytes = render_recipe_pdf(recipe)
    logger.info(f"Rendered PDF for recipe {recipe_id} ({len(pdf_bytes)} bytes)")

    return Response(
        content=pdf_bytes,
        media_type="application/pdf",
        headers={"Content-Disposition": _content_disposition(recipe["name"])},
    )


@router.post("", status_code=201)
async def create_recipe(request: RecipeRequest) -> Dict:
    _require_recipe_fields(request)

    try:
        recipe = await create_recipe_in_db(
            request.name.strip(),
            request.ingredients,
            request.instructions,
            request.created_by,
        )
    except DuplicateRecipeName as e:
        raise HTTPException(status_code=400, detail=str(e))
    except UnknownRecipeAuthor:
        raise HTTPException(status_code=400, detail="Unknown user in created_by")

    return {
        "success": True,
        "data": recipe,
        "message": "Recipe created successfully",
    }


@router.put("/{recipe_id}")
async def update_recipe(recipe_id: int, request: RecipeRequest) -> Dict:
    """Replace name, ingredients and instructions of an existing recipe"""
    _require_recipe_fields(request)

    try:
        recipe = await update_recipe_in_db(
            recipe_id, request.name.strip(), request.ingredients, request.instructions
        )
    except RecipeNotFound:
        raise HTTPException(status_code=404, detail="Recipe not found")
    except DuplicateRecipeName as e:
        raise HTTPException(status_code=400, detail=str(e))

    return {
        "success": True,
        "data": recipe,
        "message": "Recipe updated successfully",
    }


@router.delete("/{recipe_id}")
async def delete_recipe(recipe_id: int) -> Dict:
    try:
        await delete_recipe_from_db(recipe_id)
    except RecipeNotFound:
        raise HTTPException(status_code=404, detail="Recipe not found")

    return {"success": True, "message": "Recipe deleted successfully"}
