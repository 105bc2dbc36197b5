"""Status command: show the persisted agent identity."""
from agent.display import print_field, print_header, print_info
from core.settings import Settings
from platforms.store import IdentityStore


def status_command(ctx):
    settings: Settings = ctx.obj['settings']
    store = IdentityStore(settings.store.path)
    info = store.get_info()

    print_header("Agent")
    print_field("Agent ID", info.agent_id)
    print_field("Name", store.agent_name)
    print_field("Server", store.server_url)
    print_field("Created", info.created_at)
    print_field("Last used", info.last_used_at)

    target = store.last_message_target
    print_field("Last message", f"{target.channel}:{target.chat_id}" if target else None)

    if info.agent_id is None:
        print_info(f"\nNo agent yet; one is created on the first message. Store: {store.path}")
