"""
Preview rendering: fold a bundle into one self-contained HTML document.
"""
import re

from services.llm_response_handler import Bundle

STYLESHEET_LINK = re.compile(
    r"""<link\b[^>]*\bhref=["'](?:\./)?(?:styles|style)\.css["'][^>]*>""",
    re.IGNORECASE,
)
SCRIPT_TAG = re.compile(
    r"""<script\b[^>]*\bsrc=["'](?:\./)?(?:script|app)\.js["'][^>]*>\s*</script>""",
    re.IGNORECASE,
)
HEAD_CLOSE = re.compile(r"</head>", re.IGNORECASE)
BODY_CLOSE = re.compile(r"</body>", re.IGNORECASE)


def _inline(markup: str, pattern: re.Pattern, block: str, anchor: re.Pattern) -> str:
    if pattern.search(markup):
        # Function replacement keeps backslashes in the asset verbatim
        markup = pattern.sub(lambda _: block, markup, count=1)
        # Later references to the same asset are dropped
        return pattern.sub("", markup)

    if anchor.search(markup):
        return anchor.sub(lambda m: block + m.group(0), markup, count=1)
    return markup + block


def render_preview(bundle: Bundle) -> str:
    """
    Render a bundle as a single HTML page.

    Local stylesheet and script references are replaced with inline blocks;
    when the markup does not reference them they are injected before
    </head> and </body>.
    """
    html = bundle.markup

    if bundle.stylesheet:
        html = _inline(html, STYLESHEET_LINK, f"<style>\n{bundle.stylesheet}\n</style>", HEAD_CLOSE)

    if bundle.script:
        html = _inline(html, SCRIPT_TAG, f"<script>\n{bundle.script}\n</script>", BODY_CLOSE)

    return html
