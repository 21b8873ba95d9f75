from __future__ import annotations

JSON_SYSTEM = "You are a helpful and expert study assistant that always responds in JSON format."

EXTRACTION_PROMPT = """Extract all text content from this document.

Instructions:
- Extract ALL text, including headings, paragraphs, bullet points, captions, etc.
- Preserve the structure and formatting as much as possible
- If there are multiple pages/slides, clearly separate them
- For diagrams or images with text, extract any visible text
- If there are tables, preserve their structure
- Return ONLY the extracted text, no additional commentary

Extracted text:"""

SUMMARY_LENGTH_INSTRUCTIONS = {
    "short": """- Keep the summary BRIEF and CONCISE (approximately 3-5 bullet points)
- Focus ONLY on the most critical concepts and takeaways
- Aim for 100-150 words maximum""",
    "medium": """- Create a BALANCED summary covering main concepts
- Include key points with moderate detail
- Aim for 200-300 words""",
    "long": """- Create a DETAILED and COMPREHENSIVE summary
- Include in-depth explanations of key concepts
- Cover all important points with supporting details
- Aim for 400-600 words with thorough coverage""",
}

SUMMARY_USER_TEMPLATE = """You are an expert study assistant. Create a {length} summary of the provided study material.

Return your response in EXACTLY this JSON format:
{{
  "summary": "The detailed markdown summary...",
  "title": "A short, professional title for the summary",
  "subject": "The primary academic subject (e.g. Mathematics, Physics, History, Biology)"
}}

Instructions for the 'summary' field:
{length_instructions}
- Use Markdown headings with # and ##
- Use '-' for bullet lists
- Highlight key definitions and important points
- Return ONLY the JSON object.

Study Material:
{content}
"""

FLASHCARDS_USER_TEMPLATE = """You are an expert study assistant. Create {count} flashcards from the following study material.

Instructions:
- Create exactly {count} flashcards
- Each flashcard should have a clear Question and a concise Answer
- Focus on testing understanding of key concepts
- Return a JSON object of this exact shape: {{"flashcards": [{{"question": "What is...", "answer": "It is..."}}]}}
- Do not include any markdown formatting or code blocks outside the JSON

Study Material:
{content}
"""

QUESTION_TYPE_INSTRUCTIONS = {
    "fill_blanks": """- This MUST be a fill-in-the-blank quiz.
- You MUST include "____" (at least four underscores) in the question text where the blank should be.
- Provide 4 options that could fit the blank, with only one being correct.""",
    "true_false": """- This MUST be a True/False quiz.
- Each question MUST have exactly 2 options: ["True", "False"].
- Indicate the correct answer index (0 for True, 1 for False).""",
    "short_answer": """- This MUST be a short answer quiz.
- For "options", provide a single string representing the ideal concise answer.
- Set "correctAnswer" to 0.""",
    "short_essay": """- This MUST be a short essay quiz.
- For "options", provide a single string containing a model answer of 2-4 sentences.
- Set "correctAnswer" to 0.""",
    "mcq": """- This MUST be a multiple choice quiz.
- Each question MUST have 4 options.
- Indicate the correct answer index (0-3).""",
}

QUESTIONS_USER_TEMPLATE = """You are an expert study assistant. Create {count} {type_label} quiz questions from the following study material.
The difficulty level should be {difficulty}.

CRITICAL INSTRUCTIONS FOR QUIZ TYPE "{question_type}":
{type_instructions}

General Instructions:
- Create exactly {count} questions
- Provide a concise but meaningful explanation for the correct answer. It MUST be specific to the question and explain *why* the chosen answer is correct based on the study material. Avoid generic explanations.
- Return the response as a JSON object with a "questions" key containing the array of questions.
- Field names for each question: "question", "options" (array of strings), "correctAnswer" (number), "explanation", "type" (set this to "{question_type}")
- Do not include any markdown formatting or code blocks outside the JSON

Study Material:
{content}
"""

ASSIGNMENT_SYSTEM = "You are an expert academic tutor."

ASSIGNMENT_USER_TEMPLATE = """You are an expert academic tutor. Specific assignment details and user instructions are provided below.
Please provide a comprehensive solution and explanation.

Assignment Title: {title}

User Instructions:
{instructions}

File Content:
{content}

Instructions:
- Solve the assignment step-by-step
- Explain your reasoning clearly
- If code is required, provide clean, commented code
- Provide at least 3-5 academic references or sources used for the solution
- Format the response in Markdown with clear headings: # Solution, # Explanation, and # References
"""

REFINE_SYSTEM = "You are an expert academic editor."

REFINE_USER_TEMPLATE = """You are an expert academic editor. Improve the following study notes to be more structured, detailed, and suitable for generating exam questions.

Instructions:
- Organize the text with clear headings and bullet points
- Fix any grammar or spelling errors
- Expand on brief concepts with accurate definitions and context
- Ensure the content is factually accurate and academic
- Maintain the original meaning but enhance clarity and depth

Original Text:
{content}
"""

FEEDBACK_SYSTEM = "You are a helpful tutor. Return plain text only, concise and actionable."

FEEDBACK_USER_TEMPLATE = """You are an expert tutor. Provide personalized exam feedback.

Exam title: {title}
Subject: {subject}
Score: {score}%
Time spent (seconds): {time_spent}

The student needs:
1) A short diagnosis of what went wrong (patterns)
2) 3-5 specific focus areas (concept names)
3) A 7-day study plan (bullets)
4) Practice suggestions: 8-12 targeted tasks/questions

Incorrect/unanswered questions (with correct answers):
{missed}

Write in a clear, motivating tone. No markdown headers; use short bullet points where helpful.
"""
