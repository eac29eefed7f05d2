# Prompts for the insight extraction call.
# The JSON schema in INSIGHT_EXTRACTION_USER_PROMPT is the contract the
# extraction parser validates against; change both together.

INSIGHT_EXTRACTION_SYSTEM_PROMPT = (
    "You are an expert analyst. Analyze the provided text about customer feedback, "
    "interviews, or research notes. Extract key insights, organize them into structured "
    "data. Identify distinct quotes, customer pain points, proposed solutions, discussed "
    "features, and overarching themes. Represent these as Nodes and Relationships (Edges) "
    "for a Knowledge Graph or Mind Map, linking relevant quotes to Nodes. Format the "
    "output as a single JSON object."
)

INSIGHT_EXTRACTION_USER_PROMPT = r"""Analyze the following text. Extract:
- Key Quotes (precise sentences or paragraphs)
- Pain Points (customer problems, frustrations)
- Solutions (ideas or features that address pains)
- Themes (major topics or categories)
- Connections/Relationships between these concepts (e.g., Pain X leads to Idea Y, Quote Z supports Pain X).

Provide the output as a JSON object with the following structure:
{
  "quotes": [{"id": 1, "text": "...", "start_index": 0, "end_index": 10}],
  "nodes": [{"id": 1, "type": "pain|solution|theme|feature", "label": "...", "description": "..."}],
  "edges": [{"from_node_id": 1, "to_node_id": 2, "type": "causes|solves|relates_to|supports", "description": "..."}],
  "quote_node_links": [{"quote_id": 1, "node_id": 2, "type": "supports"}]
}
Include character indices ("start_index", "end_index") for quotes if possible; omit them otherwise.
Ensure unique IDs within each array in the JSON output. IDs must refer to items within the same JSON output, not database IDs.
Return only the JSON object.
"""

TEXT_DELIMITER = '"""'
