import logging
from flask import current_app
from google.genai import types

from quranic_complex.ai.client import generate_content
from quranic_complex.ai.prompts import system_prompt, TITLE_PROMPT
from quranic_complex.ai.tools import declarations, execute_tool

logger = logging.getLogger(__name__)

CHAT_MODELS = ('chat-model', 'agent-model')
TITLE_MAX_LENGTH = 80


def history_to_contents(messages):
    """Stored chat messages as Gemini contents; only text parts are replayed."""
    contents = []
    for message in messages:
        text = message.text
        if not text:
            continue
        role = 'model' if message.role == 'assistant' else 'user'
        contents.append(types.Content(role=role, parts=[types.Part.from_text(text=text)]))
    return contents


def _response_text(response):
    candidates = response.candidates or []
    if not candidates or candidates[0].content is None:
        return ''
    return ''.join(part.text for part in candidates[0].content.parts or [] if part.text)


def generate_title(message):
    response = generate_content(
        model=current_app.config['GEMINI_TITLE_MODEL'],
        contents=TITLE_PROMPT.format(message=message),
    )
    title = _response_text(response).strip().strip('"').replace(':', '')
    return (title or message.strip())[:TITLE_MAX_LENGTH]


def run_agent(ctx, messages, selected_chat_model='agent-model'):
    """Run the tool-calling loop and return the assistant message parts.

    The model is called at most AI_MAX_STEPS times. Each step either ends
    the turn with text or requests tool calls, whose results are fed back.
    """
    use_tools = selected_chat_model == 'agent-model'
    config = types.GenerateContentConfig(
        system_instruction=system_prompt(selected_chat_model),
        tools=[types.Tool(function_declarations=declarations())] if use_tools else None,
        automatic_function_calling=types.AutomaticFunctionCallingConfig(disable=True),
    )
    contents = history_to_contents(messages)
    parts = []
    max_steps = current_app.config.get('AI_MAX_STEPS', 5)

    for step in range(1, max_steps + 1):
        response = generate_content(
            model=current_app.config['GEMINI_CHAT_MODEL'],
            contents=contents,
            config=config,
        )
        text = _response_text(response)
        if text:
            parts.append({'type': 'text', 'text': text})

        calls = (response.function_calls or []) if use_tools else []
        if not calls:
            logger.info('Chat %s finished after %d step(s)', ctx.chat_id, step)
            break

        contents.append(response.candidates[0].content)
        results = []
        for call in calls:
            args = dict(call.args or {})
            result = execute_tool(ctx, call.name, args)
            parts.append({'type': 'tool-invocation', 'toolName': call.name, 'args': args, 'result': result})
            results.append(types.Part.from_function_response(name=call.name, response=result))
        contents.append(types.Content(role='user', parts=results))
    else:
        logger.warning('Chat %s stopped after %d steps', ctx.chat_id, max_steps)

    return parts
