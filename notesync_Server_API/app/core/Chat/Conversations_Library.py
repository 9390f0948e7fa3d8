# Conversations_Library.py
# Description: Conversation and message storage operations. Deleting or restoring a conversation
# carries its messages along in the same transaction.
#
# Imports
import uuid
from datetime import datetime
from typing import Callable, List, Optional, Union
#
# 3rd-party Libraries
from loguru import logger
#
# Local Imports
from notesync_Server_API.app.core.DB_Management.NoteSync_DB import NoteSyncDB, InputError, NotFoundError
from notesync_Server_API.app.core.DB_Management.Entity_Models import Conversation, Message, MessageRole, utc_now
from notesync_Server_API.app.core.DB_Management.Entity_Stores import ConversationStore, MessageStore, FieldPatch
#
########################################################################################################################
#
# Functions:

DEFAULT_CONVERSATION_TITLE = "New conversation"


class ConversationsService:

    def __init__(self, db: NoteSyncDB, clock: Callable[[], datetime] = utc_now):
        self.db = db
        self.clock = clock
        self.conversation_store = ConversationStore(db)
        self.message_store = MessageStore(db)

    def _require_conversation(self, conn, owner_user_id: str, conversation_id: str,
                              include_deleted: bool = False) -> Conversation:
        conversation = self.conversation_store.get(conn, owner_user_id, conversation_id,
                                                   include_deleted=include_deleted)
        if conversation is None:
            raise NotFoundError("Conversation not found.", entity="conversation", entity_id=conversation_id)
        return conversation

    # --- Conversations ---
    def create_conversation(self, owner_user_id: str, title: Optional[str] = None,
                            conversation_id: Optional[str] = None) -> Conversation:
        now = self.clock()
        conversation = Conversation(
            id=conversation_id or str(uuid.uuid4()),
            owner_user_id=owner_user_id,
            title=title.strip() if title and title.strip() else DEFAULT_CONVERSATION_TITLE,
            created_at=now,
            updated_at=now,
        )
        with self.db.transaction(immediate=True) as conn:
            self.conversation_store.insert(conn, conversation)
        logger.info(f"Conversation '{conversation.id}' created for owner '{owner_user_id}'.")
        return conversation

    def get_conversation(self, owner_user_id: str, conversation_id: str,
                         include_deleted: bool = False) -> Conversation:
        with self.db.transaction() as conn:
            return self._require_conversation(conn, owner_user_id, conversation_id, include_deleted)

    def list_conversations(self, owner_user_id: str, limit: Optional[int] = None,
                           offset: int = 0) -> List[Conversation]:
        """Active conversations, most recently updated first."""
        with self.db.transaction() as conn:
            return self.conversation_store.list_for_owner(conn, owner_user_id, limit=limit, offset=offset)

    def update_conversation(self, owner_user_id: str, conversation_id: str, patch: FieldPatch) -> Conversation:
        if not patch:
            return self.get_conversation(owner_user_id, conversation_id)
        patch = dict(patch)
        if "title" in patch:
            title = patch["title"]
            patch["title"] = title.strip() if title and title.strip() else DEFAULT_CONVERSATION_TITLE
        with self.db.transaction(immediate=True) as conn:
            conversation = self.conversation_store.update(conn, owner_user_id, conversation_id, patch, self.clock())
            if conversation is None:
                raise NotFoundError("Conversation not found.", entity="conversation", entity_id=conversation_id)
        return conversation

    def delete_conversation(self, owner_user_id: str, conversation_id: str, permanent: bool = False) -> int:
        """Deletes the conversation and its messages. Returns the number of messages affected."""
        with self.db.transaction(immediate=True) as conn:
            self._require_conversation(conn, owner_user_id, conversation_id, include_deleted=True)
            now = self.clock()
            if permanent:
                messages = self.message_store.hard_delete_by_conversation_ids(conn, owner_user_id, [conversation_id])
                self.conversation_store.hard_delete_many(conn, owner_user_id, [conversation_id])
            else:
                messages = self.message_store.soft_delete_by_conversation_ids(
                    conn, owner_user_id, [conversation_id], now)
                self.conversation_store.soft_delete_many(conn, owner_user_id, [conversation_id], now)
        logger.info(f"Conversation '{conversation_id}' {'permanently ' if permanent else 'soft-'}deleted "
                    f"for owner '{owner_user_id}' with {messages} message(s).")
        return messages

    def restore_conversation(self, owner_user_id: str, conversation_id: str) -> Conversation:
        with self.db.transaction(immediate=True) as conn:
            self._require_conversation(conn, owner_user_id, conversation_id, include_deleted=True)
            now = self.clock()
            messages = self.message_store.restore_by_conversation_ids(conn, owner_user_id, [conversation_id], now)
            self.conversation_store.restore_many(conn, owner_user_id, [conversation_id], now)
            conversation = self.conversation_store.get(conn, owner_user_id, conversation_id)
        logger.info(f"Conversation '{conversation_id}' restored for owner '{owner_user_id}' "
                    f"with {messages} message(s).")
        return conversation

    # --- Messages ---
    def add_message(self, owner_user_id: str, conversation_id: str, role: Union[MessageRole, str], content: str,
                    message_id: Optional[str] = None) -> Message:
        try:
            role = MessageRole(role)
        except ValueError as e:
            raise InputError(f"Invalid message role: {role!r}") from e
        with self.db.transaction(immediate=True) as conn:
            self._require_conversation(conn, owner_user_id, conversation_id)
            now = self.clock()
            message = Message(
                id=message_id or str(uuid.uuid4()),
                owner_user_id=owner_user_id,
                conversation_id=conversation_id,
                role=role,
                content=content or "",
                created_at=now,
                updated_at=now,
            )
            self.message_store.insert(conn, message)
            # Appending a message counts as a change to the conversation.
            self.conversation_store.update(conn, owner_user_id, conversation_id, {}, now)
        return message

    def list_messages(self, owner_user_id: str, conversation_id: str) -> List[Message]:
        with self.db.transaction() as conn:
            self._require_conversation(conn, owner_user_id, conversation_id)
            return self.message_store.list_for_conversation(conn, owner_user_id, conversation_id)

    def delete_message(self, owner_user_id: str, message_id: str, permanent: bool = False) -> None:
        with self.db.transaction(immediate=True) as conn:
            if self.message_store.get(conn, owner_user_id, message_id, include_deleted=True) is None:
                raise NotFoundError("Message not found.", entity="message", entity_id=message_id)
            self.message_store.delete_many(conn, owner_user_id, [message_id], self.clock(), hard=permanent)

    def restore_message(self, owner_user_id: str, message_id: str) -> Message:
        with self.db.transaction(immediate=True) as conn:
            if self.message_store.get(conn, owner_user_id, message_id, include_deleted=True) is None:
                raise NotFoundError("Message not found.", entity="message", entity_id=message_id)
            self.message_store.restore_many(conn, owner_user_id, [message_id], self.clock())
            return self.message_store.get(conn, owner_user_id, message_id)

#
# End of Conversations_Library.py
#######################################################################################################################
