# scripts/create_admin.py
# 실행: python -m scripts.create_admin --username admin --email admin@example.com

import asyncio
import logging
from typing import Optional

import typer
from sqlmodel.ext.asyncio.session import AsyncSession

from app.core import exceptions as exc
from app.core.database import AsyncSessionLocal, create_db_and_tables
from app.domains.usr import crud as usr_crud
from app.domains.usr import models as usr_models
from app.domains.usr import schemas as usr_schemas
from app.domains.usr.models import UserRole

cli = typer.Typer()
logger = logging.getLogger(__name__)


async def create_admin_user(
    db: AsyncSession,
    user_in: usr_schemas.UserCreate
) -> Optional[usr_models.User]:
    """
    데이터베이스에 관리자 사용자를 생성합니다.
    사용자명 또는 이메일이 이미 있으면 생성하지 않고 None 을 반환합니다.
    """
    try:
        db_user = await usr_crud.user.create(db, obj_in=user_in)
    except exc.ConflictError as e:
        typer.echo(f"오류: {e.detail}")
        return None
    typer.echo(f"관리자 계정이 성공적으로 생성되었습니다: {db_user.username}")
    return db_user


@cli.command()
def main(
    username: str = typer.Option(
        ..., '--username', '-u',
        prompt="관리자 사용자명(ID)을 입력하세요",
        help="로그인 시 사용할 사용자명(ID)입니다."
    ),
    password: str = typer.Option(
        ..., '--password', '-p',
        prompt="관리자 비밀번호를 입력하세요",
        hide_input=True,
        confirmation_prompt=True,
        help="생성할 관리자 계정의 비밀번호입니다. (최소 8자 이상)"
    ),
    email: Optional[str] = typer.Option(None, '--email', '-e', help="관리자 이메일 주소입니다."),
    full_name: str = typer.Option("Admin", '--name', '-n', help="관리자의 이름입니다."),
    init_db: bool = typer.Option(False, '--init-db', help="테이블이 없으면 먼저 생성합니다. (개발용)"),
):
    """
    창고 재고 API를 위한 새로운 관리자(ADMIN) 계정을 생성합니다.
    """
    if len(password) < 8:
        typer.echo("오류: 비밀번호는 최소 8자 이상이어야 합니다.")
        raise typer.Abort()

    user_data = usr_schemas.UserCreate(
        email=email,
        username=username,
        password=password,
        full_name=full_name,
        role=UserRole.ADMIN,
    )

    async def run_creation():
        if init_db:
            await create_db_and_tables()
        async with AsyncSessionLocal() as db:
            return await create_admin_user(db=db, user_in=user_data)

    if asyncio.run(run_creation()) is None:
        raise typer.Exit(code=1)


if __name__ == "__main__":
    cli()
