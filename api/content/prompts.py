"""
Prompt builders for SEO content generation.
"""

from __future__ import annotations


def system_prompt(tier: str) -> str:
    if tier == "premium":
        return (
            "You are an expert SEO content writer. Create highly detailed, authoritative content optimized for "
            "search engines while providing exceptional value to readers. Include relevant facts, structured data, "
            "and comprehensive information. Always respond with valid JSON."
        )
    return (
        "You are an SEO content writer. Create informative content optimized for search engines while being "
        "valuable to readers. Always respond with valid JSON."
    )


def user_prompt(keyword: str) -> str:
    return f"""Write informative content about "{keyword}".

Format your response as a JSON object with the following structure:
{{
  "title": "An SEO-optimized title (under 60 characters)",
  "body": "The main content in HTML format. Include h2 headings, paragraphs, lists where appropriate. Optimize for SEO. Include relevant information about {keyword}."
}}

Keep the content professional, informative, and engaging. Optimize for search engines but make it valuable for human readers. Include relevant facts, data points, and information. Avoid unnecessary fluff.
The content should be well-structured with headings, paragraphs, and lists. Total content should be around 800-1200 words."""
