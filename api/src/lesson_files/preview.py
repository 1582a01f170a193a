"""Sandboxed preview document for compiled lesson components."""

import json


CONTENT_SECURITY_POLICY = (
    "default-src 'none'; "
    "script-src 'unsafe-inline' 'unsafe-eval' https://esm.sh; "
    "style-src 'unsafe-inline'; "
    "connect-src https:; "
    "img-src https: data:"
)

PREVIEW_HEADERS = {
    "X-Frame-Options": "SAMEORIGIN",
    "Content-Security-Policy": CONTENT_SECURITY_POLICY,
}

FILE_NOT_FOUND_HTML = "<p>File not found</p>"
NO_COMPONENT_HTML = "<p>No compiled component available for this file.</p>"

_TEMPLATE = """<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="utf-8" />
  <meta name="viewport" content="width=device-width, initial-scale=1" />
  <script type="importmap">
__IMPORT_MAP__
  </script>
  <style>
    *, *::before, *::after { box-sizing: border-box; }
    body {
      margin: 0;
      padding: 1rem;
      font-family: system-ui, -apple-system, sans-serif;
      background: transparent;
    }
    #error {
      color: #dc3545;
      padding: 1rem;
      border: 1px solid #dc3545;
      border-radius: 6px;
      font-family: monospace;
      font-size: 0.875rem;
    }
  </style>
</head>
<body>
  <div id="app"></div>
  <script type="module">
    async function init() {
      try {
        const { mount } = await import('svelte');
        const mod = await import(__COMPONENT_URL__);
        const Component = mod.default;
        if (!Component) {
          throw new Error('Component file does not export a default component.');
        }
        mount(Component, { target: document.getElementById('app') });
      } catch (err) {
        document.getElementById('app').innerHTML =
          '<div id="error">Failed to load component:<br>' +
          (err instanceof Error ? err.message : String(err)) +
          '</div>';
        console.error(err);
      }
    }
    init();
  </script>
</body>
</html>
"""


def render_preview(compiled_url: str, runtime_url: str) -> str:
    """HTML page mounting the component at ``compiled_url``."""
    import_map = {"imports": {"svelte": runtime_url, "svelte/": f"{runtime_url}/"}}
    return _TEMPLATE.replace(
        "__IMPORT_MAP__", json.dumps(import_map, indent=2)
    ).replace("__COMPONENT_URL__", json.dumps(compiled_url))
