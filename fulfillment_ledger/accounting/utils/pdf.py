from django.template.loader import render_to_string


def render_pdf(template_name, context) -> bytes:
    # WeasyPrint needs Pango at import time; only load it when a PDF is requested.
    from weasyprint import HTML

    html_string = render_to_string(template_name, context)
    return HTML(string=html_string).write_pdf()
