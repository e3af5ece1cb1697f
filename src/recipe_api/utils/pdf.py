from typing import Dict

from fpdf import FPDF


def _latin1(text: str) -> str:
    # The core PDF fonts only cover Latin-1
    return text.encode("latin-1", "replace").decode("latin-1")


def render_recipe_pdf(recipe: Dict) -> bytes:
    pdf = FPDF()
    pdf.add_page()
    pdf.set_margins(10, 10, 10)

    pdf.set_font("Helvetica", style="B", size=16)
    pdf.multi_cell(0, 10, _latin1(recipe["name"]), new_x="LMARGIN", new_y="NEXT")
    pdf.ln(4)

    for heading, body in (
        ("Ingredients:", recipe["ingredients"]),
        ("Instructions:", recipe["instructions"]),
    ):
        pdf.set_font("Helvetica", style="B", size=12)
        pdf.cell(0, 8, heading, new_x="LMARGIN", new_y="NEXT")
        pdf.set_font("Helvetica", size=12)
        pdf.multi_cell(0, 7, _latin1(body), new_x="LMARGIN", new_y="NEXT")
        pdf.ln(4)

    return bytes(pdf.output())
