"""
api/app.py — 참조용 원격 시험 서비스 FastAPI 앱 + 사용자 쿠키 미들웨어
"""

import logging
import threading
import time

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware

from api.config import SESSION_TTL, USER_COOKIE
from api.routes import router
import api.session as session


def create_app(cleanup: bool = True) -> FastAPI:
    app = FastAPI(title="Exam Service", docs_url=None, redoc_url=None)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # 사용자 미들웨어: 쿠키에서 사용자 ID를 읽고, 없으면 새로 발급
    @app.middleware("http")
    async def user_middleware(request: Request, call_next):
        uid = request.cookies.get(USER_COOKIE)
        if not uid or not session.has_user(uid):
            uid = session.create_user()

        request.state.user_id = uid
        response: Response = await call_next(request)
        response.set_cookie(
            key=USER_COOKIE,
            value=uid,
            httponly=True,
            samesite="lax",
            max_age=SESSION_TTL,
        )
        return response

    app.include_router(router)

    # 만료 사용자 주기적 정리 (5분마다)
    def _cleanup_loop():
        while True:
            time.sleep(300)
            removed = session.cleanup_expired()
            if removed:
                logging.getLogger(__name__).info(f"만료 사용자 {removed}명 정리")

    if cleanup:
        t = threading.Thread(target=_cleanup_loop, daemon=True)
        t.start()

    return app
