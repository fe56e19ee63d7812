"""Judge prompt templates for voice assistant responses.

One fixed system rubric covers the four scored dimensions. The user
prompt prepends a scenario-type fragment that tells the judge what
"task completed" means for that kind of scenario.
"""

from __future__ import annotations


JUDGE_SYSTEM_PROMPT = """You are an expert evaluator of voice AI assistants. You will read a user request, the outcome the user expected, and the assistant's spoken response (as a transcript), then grade the response.

Score each of the following dimensions on an integer scale from 1 to 10:

1. **Accuracy**: Is the response correct and relevant to what the user asked?
   - 1-3: Wrong, off-topic, or contains serious errors
   - 4-6: Partly correct, with noticeable gaps or small mistakes
   - 7-9: Largely correct with minor omissions
   - 10: Fully correct and directly on point

2. **Helpfulness**: Does the response move the user toward their goal?
   - 1-3: Unhelpful or misleading
   - 4-6: Somewhat useful but incomplete
   - 7-9: Useful and actionable
   - 10: Goes beyond what the user needed

3. **Naturalness**: Does the response sound natural when spoken aloud?
   - 1-3: Stilted, robotic, or unsuitable for speech
   - 4-6: Understandable but obviously machine-generated
   - 7-9: Fluent and pleasant to listen to
   - 10: Indistinguishable from a natural human speaker

4. **Efficiency**: Is the length right for a voice interaction?
   - 1-3: Far too long or too short
   - 4-6: Acceptable but could be tighter
   - 7-9: Well paced with little filler
   - 10: Exactly as long as it needs to be

Also decide whether the task was completed (true or false) and briefly explain your scores.

Your answer MUST be a single valid JSON object."""


TASK_COMPLETION_PROMPT = """## Scenario type: task completion

The user asked the assistant to carry out an action, for example setting a reminder, booking a table, controlling a device, sending a message, or scheduling a meeting.

### What to look for
- **Accuracy**: Was the request understood and the right action taken?
- **Helpfulness**: Did the assistant confirm the action with the relevant details?
- **Naturalness**: Did the confirmation read like normal conversation?
- **Efficiency**: Was the confirmation short but complete?
- **Task completed**: Was the action carried out?

### Notes
- Count the task as completed when the assistant acknowledged the request and confirmed (or simulated) doing it.
- Key details such as time, recipient, or settings should be confirmed.
- Excessive confirmation or needless follow-up questions lower efficiency."""


INFORMATION_RETRIEVAL_PROMPT = """## Scenario type: information retrieval

The user asked the assistant for information, for example a factual answer, a definition, weather or news, directions, or an explanation of a concept.

### What to look for
- **Accuracy**: Is the information correct and current?
- **Helpfulness**: Is the question fully answered?
- **Naturalness**: Is complex information easy to follow by ear?
- **Efficiency**: Is the level of detail appropriate without overwhelming the listener?
- **Task completed**: Was the requested information provided?

### Notes
- Wrong information is worse than incomplete information.
- Spoken answers should not be too dense to follow.
- Count the task as completed when the core question was answered."""


CONVERSATION_FLOW_PROMPT = """## Scenario type: conversation flow

The scenario tests conversational skill, for example natural dialogue, follow-up questions, keeping context across turns, handling ambiguous requests, or recovering from errors.

### What to look for
- **Accuracy**: Did the assistant interpret the conversational context correctly?
- **Helpfulness**: Did the reply move the conversation forward?
- **Naturalness**: Does the reply feel like a human conversation partner?
- **Efficiency**: Is the reply well paced for dialogue?
- **Task completed**: Did the assistant keep the conversation coherent?

### Notes
- Reasonable hedging or clarifying questions are acceptable.
- Losing track of earlier context is a significant failure.
- Count the task as completed when the assistant engaged meaningfully with the conversation."""


SCENARIO_PROMPTS: dict[str, str] = {
    "task-completion": TASK_COMPLETION_PROMPT,
    "information-retrieval": INFORMATION_RETRIEVAL_PROMPT,
    "conversation-flow": CONVERSATION_FLOW_PROMPT,
}


EVALUATION_TEMPLATE = """{scenario_block}

## Evaluation task

**Scenario name:** {scenario_name}

**User request:**
"{user_prompt}"

**Expected outcome:**
{expected_outcome}

**Assistant response:**
"{ai_response}"

## Instructions

Grade the assistant response using the criteria above, taking the expected outcome into account for accuracy and task completion.

Reply with ONLY a JSON object in exactly this format:
{{
  "accuracy": <number 1-10>,
  "helpfulness": <number 1-10>,
  "naturalness": <number 1-10>,
  "efficiency": <number 1-10>,
  "taskCompleted": <boolean>,
  "reasoning": "<short explanation of the scores>"
}}"""


SCORE_FIELDS: tuple[str, ...] = ("accuracy", "helpfulness", "naturalness", "efficiency")


def _score_property(label: str) -> dict:
    return {
        "type": "number",
        "minimum": 1,
        "maximum": 10,
        "description": f"{label} score from 1 to 10",
    }


JUDGE_RESPONSE_SCHEMA: dict = {
    "type": "object",
    "properties": {
        "accuracy": _score_property("Accuracy"),
        "helpfulness": _score_property("Helpfulness"),
        "naturalness": _score_property("Naturalness"),
        "efficiency": _score_property("Efficiency"),
        "taskCompleted": {
            "type": "boolean",
            "description": "Whether the task was completed",
        },
        "reasoning": {
            "type": "string",
            "description": "Explanation of the scores",
        },
    },
    "required": [*SCORE_FIELDS, "taskCompleted", "reasoning"],
    "additionalProperties": False,
}


def get_scenario_prompt(scenario_type: str) -> str:
    """Return the rubric fragment for a scenario type.

    Unknown types fall back to the task-completion fragment.
    """
    return SCENARIO_PROMPTS.get(scenario_type, TASK_COMPLETION_PROMPT)


def build_evaluation_prompt(
    scenario_type: str,
    scenario_name: str,
    user_prompt: str,
    expected_outcome: str,
    ai_response: str,
) -> str:
    """Build the judge user prompt for one scenario response.

    Args:
        scenario_type: Scenario type key selecting the rubric fragment.
        scenario_name: Human-readable scenario name.
        user_prompt: What the user asked the voice assistant.
        expected_outcome: What a correct response should achieve.
        ai_response: Transcript of the assistant's spoken response.

    Returns:
        Fully rendered user prompt string.
    """
    return EVALUATION_TEMPLATE.format(
        scenario_block=get_scenario_prompt(scenario_type),
        scenario_name=scenario_name,
        user_prompt=user_prompt,
        expected_outcome=expected_outcome,
        ai_response=ai_response,
    )
