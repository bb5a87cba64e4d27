#!/usr/bin/env python3
"""
Squid Game 投注模拟 - 后端主入口
"""

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from squidbet.core.config import settings
from squidbet.api import api_router
from squidbet.core.database import init_db

app = FastAPI(
    title=settings.APP_NAME,
    description="五轮淘汰赛模拟 + 动态赔率投注后端API",
    version=settings.VERSION
)

# CORS设置
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,  # 前端开发服务器
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# 注册API路由
app.include_router(api_router, prefix="/api")

@app.on_event("startup")
async def startup_event():
    """应用启动时的初始化"""
    print(f"🚀 启动{settings.APP_NAME}后端服务...")
    if settings.LEDGER_MIRROR_MODE == "database":
        await init_db()
        print("✅ 账本数据库已就绪")
    print(f"📡 账本镜像模式: {settings.LEDGER_MIRROR_MODE}")

@app.get("/")
async def root():
    """根路径健康检查"""
    return {"message": f"{settings.APP_NAME}后端运行中", "status": "healthy"}

@app.get("/health")
async def health_check():
    """健康检查端点"""
    return {"status": "healthy", "service": "squid-game-betting"}

if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        log_level="info"
    )
