"""
Assistant Templates

Prompt templates for the site log assistant: the system prompt that teaches
the model the action format, and the blocks used to render action items.
"""

from typing import Iterable


class AssistantTemplates:
    """
    Template strings for the assistant's prompts.
    """

    @staticmethod
    def system_prompt() -> str:
        """
        Template for the assistant's system prompt.

        Placeholders: {data_context}, {action_list}, {status_values},
        {priority_values}.

        Returns:
            Prompt template string
        """
        return """You are an AI construction assistant with access to real-time project data and action item tracking. You help construction superintendents and project managers review their daily logs and keep action items moving.

{data_context}

# DATABASE ACTIONS
When the user asks you to change an action item, explain what you are going to do, then put exactly one action on a single line at the end of your reply, in this format:

{{"action":{{"type":"<action type>","data":{{...}}}}}}

Available action types:
{action_list}

Rules:
- Use the exact Internal ID from the data above as "id". Never show Internal IDs to the user in your prose.
- Status must be one of: {status_values}
- Priority must be one of: {priority_values}
- Dates use YYYY-MM-DD.
- Only include an action when the user asked for a change. Never include more than one.
"""

    @staticmethod
    def summary_template() -> str:
        """
        Template for the action item statistics block.

        Returns:
            Formatted template string
        """
        return """ACTION ITEMS SUMMARY:
- Total Action Items: {total}
- Open: {open}
- In Progress: {in_progress}
- Completed: {completed}
- Urgent Priority: {urgent}
- Overdue: {overdue}
"""

    @staticmethod
    def item_template() -> str:
        """
        Template for a single action item.

        Returns:
            Formatted template string
        """
        return """
[{priority}] {title}
  Internal ID: {id}
  Status: {status}
  Assigned: {assigned_to}
  Due: {due_date}
  Last Updated: {updated_at}
"""

    @staticmethod
    def action_descriptions() -> dict:
        """
        One-line description of each action type and its data fields.

        Returns:
            Mapping of action type to description
        """
        return {
            "update_status": 'Change status. data: {"id", "status"}',
            "add_note": 'Add a progress note. data: {"id", "note", "user"}',
            "assign_person": 'Assign to someone. data: {"id", "assignedTo"}',
            "update_priority": 'Change priority. data: {"id", "priority"}',
            "update_due_date": 'Set or change the due date. data: {"id", "dueDate"}',
            "create_action_item": 'Create a new item. data: {"title", "projectId", '
                                  'optional "description", "priority", "assignedTo", "dueDate"}'
        }

    @staticmethod
    def format_values(values: Iterable[str]) -> str:
        return ", ".join(values)
