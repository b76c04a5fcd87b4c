import io

from rich.console import Console

from toolcheck.cli.render import HTML_HINT, Renderer, format_duration


def _renderer(**kwargs) -> tuple[Renderer, io.StringIO]:
    buffer = io.StringIO()
    return Renderer(Console(file=buffer, width=120, color_system=None), **kwargs), buffer


def test_format_duration() -> None:
    assert format_duration(0) == "0ms"
    assert format_duration(850) == "850ms"
    assert format_duration(1000) == "1.00s"
    assert format_duration(1250) == "1.25s"


def test_response_panel_shows_duration() -> None:
    renderer, buffer = _renderer()
    renderer.response_received(2, {"id": "resp_1"}, 1530)
    output = buffer.getvalue()
    assert "Response (turn 2, 1.53s)" in output
    assert "resp_1" in output


def test_hidden_bodies_only_show_titles() -> None:
    renderer, buffer = _renderer(show_bodies=False)
    renderer.request_built(1, {"secret": "body"})
    assert "secret" not in buffer.getvalue()


def test_html_error_adds_hint() -> None:
    renderer, buffer = _renderer()
    renderer.error("Error: HTTP 404", "<html>nope</html>", "text/html", html=True)
    output = buffer.getvalue()
    assert "Error: HTTP 404" in output
    assert HTML_HINT in output
    assert "<html>nope</html>" in output


def test_plain_error_has_no_hint() -> None:
    renderer, buffer = _renderer()
    renderer.error("Error: request failed")
    assert HTML_HINT not in buffer.getvalue()


def test_markup_in_model_output_is_escaped() -> None:
    renderer, buffer = _renderer()
    renderer.assistant_turn(1, "[bold]not markup[/bold]")
    assert "[bold]not markup[/bold]" in buffer.getvalue()
