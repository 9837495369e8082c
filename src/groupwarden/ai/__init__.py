"""
Classification backend for Groupwarden.

- **classification_gateway.py**: Wraps an ``AsyncOpenAI`` client. Text toxicity
  goes to the moderations endpoint; sensitive-topic and media checks go to chat
  completions and are parsed against JSON schemas. Every call returns ``Ok`` or
  ``Err`` instead of raising.
- **prompts.py**: System prompts and the category taxonomies they reference.
"""
