from fastapi import APIRouter, Depends

from .. import schemas
from ..engine.catalog import MAX_ANSWER_SCORE, QuestionCatalog
from .deps import catalog_dep

router = APIRouter(prefix="/catalog", tags=["catalog"])


@router.get("", response_model=schemas.CatalogResponse)
def get_catalog(catalog: QuestionCatalog = Depends(catalog_dep)):
    return schemas.CatalogResponse(
        version=catalog.version,
        max_score=MAX_ANSWER_SCORE,
        categories=[
            schemas.CategoryOut(
                key=key,
                name=name,
                questions=[schemas.QuestionOut.model_validate(q) for q in catalog.in_category(key)],
            )
            for key, name in catalog.categories
        ],
    )
