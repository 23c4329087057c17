from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.deps import CurrentUser, get_current_user
from app.db.session import get_db
from app.schemas.code import CodeRequest, CodeResponse
from app.services.code_generator import generate_code

router = APIRouter()


@router.post("/code-generator", response_model=CodeResponse)
def code_generator(
    payload: CodeRequest,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    return CodeResponse(code=generate_code(db, payload.module.strip(), payload.text))
