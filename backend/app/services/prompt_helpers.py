"""
Prompt helpers: fixed instruction template for quiz generation.
The model must return a bare JSON array of exactly 10 questions; course material goes at the end, verbatim.
"""

QUESTIONS_PER_QUIZ = 10
OPTIONS_PER_QUESTION = 4

QUIZ_PROMPT_TEMPLATE = """You are an expert educational content creator. Generate exactly 10 high-quality multiple-choice quiz questions based on the following course material.

IMPORTANT REQUIREMENTS:
1. Generate EXACTLY 10 questions - no more, no less
2. Each question must be relevant to the content and test understanding
3. Questions should cover different aspects of the material
4. Each question must have exactly 4 options (A, B, C, D)
5. The correct answer index must be 0, 1, 2, or 3 (representing the position in the options array)
6. Include a clear explanation for each correct answer

OUTPUT FORMAT (JSON array only, no markdown, no extra text):
[
  {{
    "question": "Question text here?",
    "options": ["Option A", "Option B", "Option C", "Option D"],
    "correct": 0,
    "explanation": "Explanation of why this is the correct answer."
  }},
  ...
]

Course Material:
{material}

Generate the quiz questions now:"""


def build_quiz_prompt(chunk: str) -> str:
    """Return the full instruction with the chunk embedded verbatim. Pure; same input, same prompt."""
    return QUIZ_PROMPT_TEMPLATE.format(material=chunk)
