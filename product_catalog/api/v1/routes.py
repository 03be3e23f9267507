from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from product_catalog.core.auth import require_read, require_write
from product_catalog.core.deps import form_payload, get_catalog
from product_catalog.exceptions import MissingIdentifierError
from product_catalog.schemas import OperationResult, OperationStatus, ProductRead
from product_catalog.services import NOT_FOUND, ProductCatalog

router = APIRouter(prefix="/v1")


def _failure_status(result: OperationResult) -> int:
    if isinstance(result.error, dict):
        return 422
    if result.error == MissingIdentifierError.message:
        return status.HTTP_400_BAD_REQUEST
    return status.HTTP_500_INTERNAL_SERVER_ERROR


@router.get(
    "/products",
    response_model=list[ProductRead],
    dependencies=[Depends(require_read())],
)
def http_list_products(catalog: ProductCatalog = Depends(get_catalog)):
    result = catalog.active_view()
    if not result.success:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=result.error)
    return result.data


@router.get(
    "/products/{product_id}",
    response_model=ProductRead,
    dependencies=[Depends(require_read())],
)
def http_get_product(product_id: str, catalog: ProductCatalog = Depends(get_catalog)):
    result = catalog.get(product_id)
    if result.success:
        return result.data
    if result.error == NOT_FOUND:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=NOT_FOUND)
    raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=result.error)


@router.post(
    "/products",
    response_model=OperationResult,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_write())],
)
def http_create_product(
    response: Response,
    raw: dict[str, Any] = Depends(form_payload),
    catalog: ProductCatalog = Depends(get_catalog),
):
    result = catalog.submit_create(raw)
    if not result.success:
        response.status_code = _failure_status(result)
    return result


@router.patch(
    "/products/{product_id}",
    response_model=OperationResult,
    dependencies=[Depends(require_write())],
)
def http_update_product(
    product_id: str,
    response: Response,
    raw: dict[str, Any] = Depends(form_payload),
    catalog: ProductCatalog = Depends(get_catalog),
):
    # The path wins over any id field in the body.
    result = catalog.submit_update({**raw, "id": product_id})
    if not result.success:
        response.status_code = _failure_status(result)
    return result


@router.delete(
    "/products/{product_id}",
    response_model=OperationResult,
    dependencies=[Depends(require_write())],
    responses={204: {"description": "Product soft-deleted"}},
)
def http_delete_product(
    product_id: str,
    confirm: bool = Query(True, description="false records a cancelled request, nothing is deleted"),
    catalog: ProductCatalog = Depends(get_catalog),
):
    result = catalog.soft_delete(product_id, confirmed=confirm)
    if result.success:
        return Response(status_code=status.HTTP_204_NO_CONTENT)
    if result.status is OperationStatus.CANCELLED:
        return result
    raise HTTPException(status_code=_failure_status(result), detail=result.error)
