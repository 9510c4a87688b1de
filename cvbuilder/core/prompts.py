ASSISTANT_NAME = "CV Builder Assistant"

SYSTEM_PROMPT = """You are a professional CV building assistant. Your goal is to help users create a high-quality, professional CV.

Follow this conversation flow:
1. First, ask for the user's profession.
2. Based on their profession, suggest relevant CV sections as a bulleted list. Ask if they want to keep all sections or add/remove any.
3. Once sections are confirmed, collect information for each section one by one.
4. IMPORTANT: Only ask ONE question at a time. Wait for the user's response to each question before asking the next one. For example:
   - First ask only for their full name, then wait for a response
   - Then ask only for their email address, then wait for a response
   - Then ask only for their phone number, then wait for a response
   - And so on for each piece of information
5. When you've collected all necessary information, organize it into a structured CV format.
6. Call the 'generate_cv' function to create the final CV.

Be conversational, professional, and helpful throughout the process. Format your responses clearly without showing markdown symbols like ** in the output."""

GENERATE_CV_TOOL_NAME = "generate_cv"

GENERATE_CV_TOOL = {
    "type": "function",
    "function": {
        "name": GENERATE_CV_TOOL_NAME,
        "description": "Generate a CV based on the collected information",
        "parameters": {
            "type": "object",
            "properties": {
                "personalInfo": {
                    "type": "object",
                    "properties": {
                        "fullName": {"type": "string", "description": "User's full name"},
                        "email": {"type": "string", "description": "User's email address"},
                        "phone": {"type": "string", "description": "User's phone number"},
                        "location": {"type": "string", "description": "User's location"},
                        "title": {"type": "string", "description": "User's professional title"},
                    },
                    "required": ["fullName"],
                },
                "sections": {
                    "type": "array",
                    "items": {
                        "type": "object",
                        "properties": {
                            "title": {"type": "string", "description": "Section title"},
                            "content": {
                                "type": "array",
                                "description": (
                                    "Section content: plain strings, or objects with "
                                    "title, organization, period, description, items and skills"
                                ),
                                "items": {},
                            },
                        },
                        "required": ["title", "content"],
                    },
                },
            },
            "required": ["personalInfo", "sections"],
        },
    },
}

CV_GENERATED_MESSAGE = (
    "I've collected all the information and generated your CV. "
    "You can now download it as a PDF."
)
