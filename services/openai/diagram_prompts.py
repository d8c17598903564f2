"""Prompt text for diagram refinement."""

REFINE_PROMPT = (
    "Clean up this hand-drawn diagram. Make the lines crisp and clear, remove any smudges "
    "or unnecessary marks, and present it as a neat, professional-looking digital drawing. "
    "Do not add any new elements or labels unless they are part of the original drawing. "
    "The primary output should be the refined image."
)


def build_edit_prompt(instruction: str) -> str:
    """Return the user instruction as sent to the image model."""
    return instruction.strip()
