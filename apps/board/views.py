"""
Todo page (front service).

GET / renders whatever snapshot is pending; POST /add relays the
submission and redirects back (post/redirect/get).
"""
import logging

from django.contrib import messages
from django.shortcuts import redirect, render
from django.views.decorators.http import require_GET, require_POST

from apps.core.exceptions import TransportFailure
from apps.core.wiring import get_transport
from .forms import ItemForm
from .services import SnapshotReader, SubmissionRelay

logger = logging.getLogger(__name__)


@require_GET
def todo_page(request):
    try:
        todos = SnapshotReader(get_transport()).refresh()
    except TransportFailure as e:
        logger.error(f"Could not refresh todos: {e}")
        return render(request, "board/todo.html", {"todos": [], "form": ItemForm(), "unavailable": True}, status=503)
    return render(request, "board/todo.html", {"todos": todos, "form": ItemForm()})


@require_POST
def add_todo(request):
    form = ItemForm(request.POST)
    if not form.is_valid():
        return render(request, "board/todo.html", {"todos": [], "form": form}, status=400)

    try:
        SubmissionRelay(get_transport()).submit(form.cleaned_data["content"])
    except TransportFailure as e:
        logger.error(f"Could not relay submission: {e}")
        messages.error(request, "The todo could not be sent. Try again later.")
    return redirect("board:todo_page")
