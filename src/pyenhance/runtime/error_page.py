"""Error page for failed renders."""
from typing import Optional

from jinja2 import Environment
from starlette.responses import HTMLResponse

_TEMPLATE = Environment(autoescape=True).from_string("""<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="utf-8">
  <title>{{ status_code }} {{ error_title }}</title>
  <style>
    :root { color-scheme: light dark; }
    main {
      font: 15px/1.5 ui-sans-serif, system-ui, sans-serif;
      max-width: 60rem;
      margin: 3rem auto;
      padding: 0 1.5rem;
    }
    header { border-bottom: 2px solid #d33; margin-bottom: 1.5rem; }
    header small { color: #888; letter-spacing: .05em; text-transform: uppercase; }
    header h1 { color: #d33; font-size: 1.6rem; margin: .25rem 0 .75rem; }
    code, pre { font: 13px/1.45 ui-monospace, SFMono-Regular, Menlo, monospace; }
    pre {
      background: rgba(127, 127, 127, .1);
      padding: .75rem 1rem;
      overflow: auto;
      white-space: pre-wrap;
      word-break: break-word;
    }
    details summary { cursor: pointer; margin-bottom: .5rem; }
  </style>
</head>
<body>
  <main>
    <header>
      <small>Render failed ({{ status_code }})</small>
      <h1>{{ error_title }}</h1>
    </header>
    <pre>{{ error_detail }}</pre>
    {% if trace %}
    <details open>
      <summary>Traceback</summary>
      <pre>{{ trace }}</pre>
    </details>
    {% endif %}
  </main>
</body>
</html>
""")


def render_error_page(
    error_title: str,
    error_detail: str,
    trace: Optional[str] = None,
    status_code: int = 500,
) -> HTMLResponse:
    """Render the page shown when a component fails to render."""
    content = _TEMPLATE.render(
        error_title=error_title,
        error_detail=error_detail,
        trace=trace,
        status_code=status_code,
    )
    return HTMLResponse(content, status_code=status_code)
