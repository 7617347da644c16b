from django.urls import path

from . import views

app_name = "board"

urlpatterns = [
    path("", views.todo_page, name="todo_page"),
    path("add", views.add_todo, name="add_todo"),
]
