from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException

from receipt_insights.api.dependencies import get_store
from receipt_insights.api.schemas import CategoryUpdateRequest, CategoryUpdateResponse
from receipt_insights.services.receipt_store import ReceiptStore

router = APIRouter(prefix="/api")


@router.put("/receipts/{receipt_id}/categories", response_model=CategoryUpdateResponse)
async def update_receipt_categories(
    receipt_id: str,
    req: CategoryUpdateRequest,
    store: Annotated[ReceiptStore, Depends(get_store)],
) -> CategoryUpdateResponse:
    if store.get(receipt_id) is None:
        raise HTTPException(status_code=404, detail="Receipt not found")

    if await store.update_categories(receipt_id, req.categories):
        return CategoryUpdateResponse(success=True, receipt=store.get(receipt_id))
    return CategoryUpdateResponse(
        success=False,
        receipt=store.get(receipt_id),
        error="Unable to save categories. Please try again in a few seconds.",
    )


@router.post("/refresh")
async def refresh_receipts(
    store: Annotated[ReceiptStore, Depends(get_store)],
) -> dict[str, object]:
    loaded = await store.refresh()
    return {
        "loaded": loaded,
        "count": len(store.receipts),
        "error": store.error,
    }
