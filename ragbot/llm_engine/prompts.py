"""
LLM Engine — Prompt builder
"""


def generate_prompt(question: str, context: str) -> str:
    """Combine retrieved context and the user's question into one prompt."""
    return f"Using this data: {context}. Respond to this prompt: {question}"


def user_message(content: str) -> dict:
    return {"role": "user", "content": content}
