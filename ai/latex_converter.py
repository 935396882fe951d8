"""Batch-convert plain-English math instructions to LaTeX with the LLM."""
import json
import logging

from ai.openai_client import ask
from ai.json_utils import parse_ai_json_list
from config.settings import CONVERSION_DEFAULTS

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = 'You convert structured math instructions into LaTeX arrays.'

CONVERT_PROMPT = """Convert each math instruction inside the JSON array into valid LaTeX strings (no dollar signs).
Interpret natural-language descriptions of advanced math structures including, but not limited to:
  - derivatives, partial derivatives, gradients, divergence, curl, and nabla notation
  - line/surface/volume integrals with limits and differential elements
  - sums/products, limits, logarithms, exponentials, trigonometric and hyperbolic functions
  - matrices, vectors, vector bold/arrow notation, dot/cross products, tensor notation
  - complex numbers, absolute values, norms, floor/ceiling, cases/piecewise definitions
  - probability/expectation/variance symbols, set/logic notation, Greek letters
  - tables (tabular/tabularx, multi-column alignment, captions), simple figure placeholders with \\text{Diagram: ...} or TikZ skeletons, and layout cues such as centering, alignment, spacing, or page regions
  - contextual annotations like symbol definitions or side notes (use \\scriptsize or \\footnotesize \\text{...} beside or beneath the main expression); resolve vague placement requests with \\hfill, minipages, or aligned environments
  - styling commands like bar, hat, tilde, underline, boxed, overbrace, underbrace, text annotations, equation/align environments
Honor explicit layout requests (align systems, cases, boxed expressions, multi-line derivations) and merge multiple operations described in a single instruction.
Return a JSON array of strings in the same order as the input, one string per instruction. Do not include explanations.
Example Input: ["integral of x from 0 to 1","sqrt of 2x","center the title Analysis 1 exam exactly in the middle of the page"]
Example Output: ["\\\\int_{0}^{1} x \\\\, dx","\\\\sqrt{2x}","\\\\begin{center}\\\\textbf{Analysis 1 exam}\\\\end{center}"]"""


def convert_batch(instructions):
    """Convert a list of instruction strings in one request.

    Returns (latex_list, model, prompt). Elements of latex_list are stripped
    strings; non-string elements come back as ''. The list may be shorter
    than the input if the model truncated its answer.
    """
    if not instructions:
        return [], None, ''

    user_prompt = (f"{CONVERT_PROMPT}\nInput:\n{json.dumps(instructions)}\n"
                   f"Output JSON array:")
    text, model, prompt = ask(
        SYSTEM_PROMPT, user_prompt,
        max_tokens=CONVERSION_DEFAULTS['max_tokens'],
        temperature=CONVERSION_DEFAULTS['temperature'],
    )
    parsed = parse_ai_json_list(text)
    if not parsed:
        raise ValueError('Empty LaTeX array from model')

    latex_list = [item.strip() if isinstance(item, str) else '' for item in parsed]
    if len(latex_list) != len(instructions):
        logger.warning('Model %s returned %d items for %d instructions',
                       model, len(latex_list), len(instructions))
    return latex_list, model, prompt
