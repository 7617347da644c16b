"""
URL configuration for the Todo Relay project.
"""
from django.contrib import admin
from django.urls import include, path
from ninja import NinjaAPI

api = NinjaAPI(
    title="Todo Relay API",
    version="1.0.0",
    description="Todo items handed off between services over message channels",
    docs_url="/docs",
)

from apps.todos.api import router as todos_router
from apps.board.api import router as board_router

api.add_router("/todos/", todos_router)
api.add_router("/board/", board_router)

urlpatterns = [
    path('admin/', admin.site.urls),
    path('api/', api.urls),
    path('', include('apps.board.urls')),
]
