"""Deterministic minimal UIs rendered from an input schema alone.

These are the fallback when generation fails, so rendering must never raise:
anything odd in the schema (non-dict properties, non-list enums, unknown
types) degrades to a plain text input instead of an error.
"""

from __future__ import annotations

from collections.abc import Mapping
from html import escape

from mcp_gen_ui.core.models import ToolDefinition
from mcp_gen_ui.core.serialization import to_json

_NUMERIC_STEPS = {"integer": "1", "number": "any"}

# JSON may only contain these characters inside strings, where the \u form is equivalent.
_SCRIPT_UNSAFE = str.maketrans({"<": "\\u003c", ">": "\\u003e", "&": "\\u0026"})


def script_json(value: object) -> str:
    """Serialize ``value`` as JSON that is safe to inline in a <script> element."""
    return to_json(value).decode().translate(_SCRIPT_UNSAFE)


def _attr(value: object) -> str:
    return escape(_default_text(value), quote=True)


def _default_text(value: object) -> str:
    match value:
        case None:
            return ""
        case bool():
            return "true" if value else "false"
        case str():
            return value
        case int() | float():
            return str(value)
        case _:
            return to_json(value).decode()


# ─────────────────────────────────────────────────────────────────────────────
# Form Fields
# ─────────────────────────────────────────────────────────────────────────────


def _label(name: str, required: bool) -> str:
    cls = ' class="required"' if required else ""
    return f'<label for="{escape(name)}"{cls}>{escape(name)}</label>'


def _select(name: str, required: bool, options: list[tuple[str, str]], default: object) -> str:
    chosen = _default_text(default) if default is not None else None
    rendered = ['<option value="">-- Select --</option>']
    for value, text in options:
        selected = " selected" if value == chosen else ""
        rendered.append(f'<option value="{escape(value)}"{selected}>{escape(text)}</option>')
    req = " required" if required else ""
    return (
        f'<select id="{escape(name)}" name="{escape(name)}"{req}>\n'
        f'        {"".join(rendered)}\n'
        "      </select>"
    )


def _input(name: str, required: bool, prop: Mapping[str, object], kind: str, step: str | None) -> str:
    attrs = [f'type="{kind}"', f'id="{escape(name)}"', f'name="{escape(name)}"']
    if step is not None:
        attrs.append(f'step="{step}"')
    if "default" in prop:
        attrs.append(f'value="{_attr(prop["default"])}"')
    if required:
        attrs.append("required")
    description = prop.get("description")
    attrs.append(f'placeholder="{escape(description) if isinstance(description, str) else ""}"')
    return f"<input {' '.join(attrs)}>"


def render_field(name: str, prop: object, required: bool) -> str:
    """Render one labelled form control for a schema property."""
    field_schema: Mapping[str, object] = prop if isinstance(prop, Mapping) else {}
    kind = field_schema.get("type")
    kind = kind if isinstance(kind, str) else None
    enum = field_schema.get("enum")
    default = field_schema.get("default")

    if isinstance(enum, list) and enum:
        values = [_default_text(v) for v in enum]
        control = _select(name, required, [(v, v) for v in values], default)
    elif kind == "boolean":
        control = _select(name, required, [("true", "Yes"), ("false", "No")], default)
    elif kind in _NUMERIC_STEPS:
        control = _input(name, required, field_schema, "number", _NUMERIC_STEPS[kind])
    else:
        control = _input(name, required, field_schema, "text", None)

    return f'    <div class="form-group">\n      {_label(name, required)}\n      {control}\n    </div>'


def render_form_fields(tool: ToolDefinition) -> str:
    required = set(tool.required)
    return "\n".join(render_field(str(name), prop, name in required) for name, prop in tool.properties.items())


# ─────────────────────────────────────────────────────────────────────────────
# Document Shell
# ─────────────────────────────────────────────────────────────────────────────

_STYLE = """  <style>
    * { box-sizing: border-box; }
    body {
      font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif;
      padding: 20px;
      max-width: 600px;
      margin: 0 auto;
      line-height: 1.5;
    }
    h1 { font-size: 1.25rem; margin: 0 0 4px 0; }
    .description { color: #666; font-size: 0.875rem; margin-bottom: 20px; }
    .form-group { margin-bottom: 16px; }
    label { display: block; font-weight: 500; font-size: 0.875rem; margin-bottom: 4px; }
    .required::after { content: " *"; color: #c00; }
    input, select {
      width: 100%;
      padding: 8px 12px;
      border: 1px solid #ccc;
      border-radius: 6px;
      font-size: 0.875rem;
    }
    input:focus, select:focus { outline: none; border-color: #0d7a5f; box-shadow: 0 0 0 2px rgba(13,122,95,0.15); }
    button {
      background: #0d7a5f;
      color: white;
      border: none;
      padding: 10px 20px;
      border-radius: 6px;
      font-size: 0.875rem;
      font-weight: 500;
      cursor: pointer;
    }
    button:disabled { background: #ccc; cursor: not-allowed; }
    .result { display: none; margin-top: 20px; padding: 16px; background: #f8f9fa; border-radius: 6px; border: 1px solid #e9ecef; }
    .result pre { margin: 0; white-space: pre-wrap; word-break: break-word; font-size: 0.8125rem; }
    .error { display: none; margin-top: 16px; padding: 12px 16px; background: #fee; border: 1px solid #fcc; border-radius: 6px; color: #c00; font-size: 0.875rem; }
    .loading { display: none; margin-top: 16px; color: #666; font-size: 0.875rem; }
  </style>"""

# Shared by both host integrations; expects `schema` to be defined.
_COMMON_JS = """
    function show(id, visible) {
      document.getElementById(id).style.display = visible ? 'block' : 'none';
    }

    function showError(message) {
      show('loading', false);
      document.getElementById('error').textContent = message || 'Tool execution failed';
      show('error', true);
      document.getElementById('submit-btn').disabled = false;
    }

    function renderResult(result) {
      show('loading', false);
      show('error', false);
      show('result', true);
      document.getElementById('submit-btn').disabled = false;
      var output = '';
      try {
        var content = (result && Array.isArray(result.content)) ? result.content : [];
        for (var i = 0; i < content.length; i++) {
          var item = content[i];
          if (item.type === 'text' && item.text) {
            try {
              output += JSON.stringify(JSON.parse(item.text), null, 2) + '\\n';
            } catch (e) {
              output += item.text + '\\n';
            }
          }
        }
      } catch (e) {
        output = '';
      }
      document.getElementById('result-content').textContent = output || JSON.stringify(result, null, 2);
    }

    function collectArgs(form) {
      var args = {};
      var props = (schema && schema.properties) || {};
      new FormData(form).forEach(function(value, key) {
        if (value === '') return;
        var prop = props[key] || {};
        if (prop.type === 'boolean') {
          args[key] = value === 'true';
        } else if (prop.type === 'integer') {
          args[key] = parseInt(value, 10);
        } else if (prop.type === 'number') {
          args[key] = parseFloat(value);
        } else {
          args[key] = value;
        }
      });
      return args;
    }

    function startLoading() {
      show('loading', true);
      show('error', false);
      show('result', false);
      document.getElementById('submit-btn').disabled = true;
    }
"""

_OPENAI_JS = """
    function init() {
      if (!window.openai) {
        window.addEventListener('openai:set-globals', init, { once: true });
        return;
      }
      if (window.openai.toolOutput) {
        renderResult(window.openai.toolOutput);
      }
      document.getElementById('tool-form').addEventListener('submit', function(e) {
        e.preventDefault();
        startLoading();
        window.openai.callTool(toolName, collectArgs(e.target))
          .then(renderResult)
          .catch(function(err) { showError(err && err.message); });
      });
    }

    init();
"""

_MCP_APPS_JS = """
    const app = new App({ name: toolName, description: 'Minimal UI' });

    app.ontoolresult = (result) => renderResult(result);

    document.getElementById('tool-form').addEventListener('submit', async (e) => {
      e.preventDefault();
      startLoading();
      try {
        renderResult(await app.callServerTool({ name: toolName, arguments: collectArgs(e.target) }));
      } catch (err) {
        showError(err && err.message);
      }
    });

    await app.connect();
"""


def _document(tool: ToolDefinition, script_open: str, script_head: str, script_body: str) -> str:
    name = escape(tool.name)
    description = escape(tool.description or "No description")
    data = (
        f"\n    const schema = {script_json(tool.input_schema)};"
        f"\n    const toolName = {script_json(tool.name)};\n"
    )
    return f"""<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="UTF-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <title>{name}</title>
{_STYLE}
</head>
<body>
  <h1>{name}</h1>
  <p class="description">{description}</p>

  <form id="tool-form">
{render_form_fields(tool)}
    <button type="submit" id="submit-btn">Execute</button>
  </form>

  <div class="loading" id="loading">Executing...</div>
  <div class="error" id="error"></div>
  <div class="result" id="result">
    <strong>Result:</strong>
    <pre id="result-content"></pre>
  </div>

  {script_open}{script_head}{data}{_COMMON_JS}{script_body}  </script>
</body>
</html>"""


def render_openai_minimal(tool: ToolDefinition) -> str:
    """Minimal UI driven through the ``window.openai`` host global."""
    return _document(tool, "<script>", "", _OPENAI_JS)


def render_mcp_apps_minimal(tool: ToolDefinition) -> str:
    """Minimal UI driven through the ext-apps ``App`` bridge."""
    return _document(
        tool,
        '<script type="module">',
        '\n    import { App } from "@modelcontextprotocol/ext-apps";',
        _MCP_APPS_JS,
    )
