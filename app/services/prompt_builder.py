from app.core.exceptions import InvalidInput

ANALYSIS_PROMPT_TEMPLATE = """Please analyze the following journal entry and provide a structured response in EXACTLY this JSON format:

{{
  "summary": ["point1", "point2", "point3"],
  "sentiment": "Positive | Negative | Neutral",
  "sentiment_reasoning": "1-2 line explanation for the sentiment",
  "wrongdoings_and_solutions": [
    {{"wrongdoing": "specific issue identified", "solution": "practical actionable solution"}},
    {{"wrongdoing": "another issue if any", "solution": "corresponding solution"}}
  ],
  "overall_score": 7
}}

IMPORTANT INSTRUCTIONS:
1. Generate a SHORT SUMMARY in point form (maximum 5 points)
2. Perform SENTIMENT ANALYSIS - classify as exactly one of: "Positive", "Negative", or "Neutral"
3. Provide 1-2 line reasoning for the sentiment classification
4. Identify WRONGDOINGS if any (actions, thoughts, or behaviors that could be improved)
5. For each wrongdoing, suggest a PRACTICAL SOLUTION that is specific and actionable
6. If no wrongdoings are identified, return an empty array: []
7. Provide an OVERALL SCORE out of 10 reflecting the quality/clarity of the journal entry
8. Respond ONLY with valid JSON, no additional text or formatting

Journal Entry:
"{journal_text}"

JSON Response:"""


def build_analysis_prompt(journal_text: str) -> str:
    if not isinstance(journal_text, str) or not journal_text.strip():
        raise InvalidInput("Journal text must be a non-empty string")
    return ANALYSIS_PROMPT_TEMPLATE.format(journal_text=journal_text.strip())
