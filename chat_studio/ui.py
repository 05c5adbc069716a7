"""
Gradio UI definition for chat-studio.

Three tabs: Chat (streaming, multi-provider), Image (Imagen) and
Settings (provider configuration). Handlers live in chat_studio.handlers.
"""

import gradio as gr

from chat_studio import handlers, state
from chat_studio.config import ASPECT_RATIOS
from chat_studio.ui_helpers import (
    CUSTOM_CSS,
    PROVIDERS_TABLE_HEADERS,
    message_placeholder,
    providers_table,
)


def create_app() -> gr.Blocks:
    """Create the Gradio application."""

    # Gradio 5.x: theme/css on Blocks(); Gradio 6.x: on launch()
    import inspect
    blocks_params = inspect.signature(gr.Blocks).parameters
    blocks_kwargs = {"title": "chat-studio"}

    if "theme" in blocks_params:
        blocks_kwargs["theme"] = gr.themes.Soft()
        blocks_kwargs["css"] = CUSTOM_CSS

    active = state.registry.resolve(state.active_provider_id)

    with gr.Blocks(**blocks_kwargs) as app:

        gr.Markdown("# chat-studio")

        with gr.Tabs():

            # ─────────────────────────────────────────────────────────
            # CHAT
            # ─────────────────────────────────────────────────────────

            with gr.Tab("💬 Chat", id="chat-tab"):
                with gr.Row():
                    provider_select = gr.Dropdown(
                        label="Provider",
                        choices=state.registry.choices(),
                        value=active.id,
                        scale=3,
                    )
                    chat_status = gr.Textbox(
                        label="Status",
                        value=f"Using {active.name}",
                        interactive=False,
                        scale=2,
                    )

                # Gradio 5.x needs type="messages"; Gradio 6.x only has that format
                chatbot_kwargs = {"elem_id": "chat-transcript", "height": 520}
                if "type" in inspect.signature(gr.Chatbot).parameters:
                    chatbot_kwargs["type"] = "messages"
                chatbot = gr.Chatbot(**chatbot_kwargs)

                with gr.Row():
                    message_box = gr.Textbox(
                        label="Message",
                        placeholder=message_placeholder(active),
                        lines=2,
                        scale=4,
                    )
                    image_files = gr.File(
                        label="Attach images",
                        file_count="multiple",
                        file_types=["image"],
                        interactive=active.supports_images,
                        scale=1,
                    )

                with gr.Row():
                    send_btn = gr.Button("Send", variant="primary")
                    stop_btn = gr.Button("🛑 Stop", variant="stop")
                    clear_btn = gr.Button("🗑️ Clear", variant="secondary")

            # ─────────────────────────────────────────────────────────
            # IMAGE
            # ─────────────────────────────────────────────────────────

            with gr.Tab("🎨 Image", id="image-tab"):
                with gr.Row():
                    with gr.Column(scale=1):
                        image_prompt = gr.Textbox(
                            label="Prompt",
                            placeholder="Describe the picture you want in detail...",
                            lines=4,
                        )
                        aspect_ratio = gr.Radio(
                            label="Aspect Ratio",
                            choices=list(ASPECT_RATIOS),
                            value=next(iter(ASPECT_RATIOS)),
                        )
                        generate_btn = gr.Button("Generate", variant="primary")
                        image_status = gr.Textbox(label="Status", interactive=False)
                    with gr.Column(scale=2):
                        generated_image = gr.Image(
                            label="Result",
                            type="pil",
                            elem_id="generated-image",
                            interactive=False,
                        )

            # ─────────────────────────────────────────────────────────
            # SETTINGS
            # ─────────────────────────────────────────────────────────

            with gr.Tab("⚙️ Settings", id="settings-tab"):
                providers_df = gr.Dataframe(
                    headers=PROVIDERS_TABLE_HEADERS,
                    value=providers_table(state.registry),
                    interactive=False,
                    elem_id="providers-table",
                )

                settings_select = gr.Dropdown(
                    label="Edit provider",
                    choices=state.registry.choices(),
                    value=None,
                )
                with gr.Row():
                    edit_id = gr.Textbox(label="ID", placeholder="my-provider")
                    edit_name = gr.Textbox(label="Display Name")
                    edit_model = gr.Textbox(label="Model ID", placeholder="deepseek-chat")
                with gr.Row():
                    edit_base_url = gr.Textbox(
                        label="Base URL", placeholder="https://api.example.com/v1"
                    )
                    edit_api_key = gr.Textbox(
                        label="API Key", placeholder="sk-...", type="password"
                    )
                with gr.Row():
                    save_btn = gr.Button("💾 Save", variant="primary")
                    delete_btn = gr.Button("Delete", variant="stop")
                settings_status = gr.Textbox(label="Status", interactive=False)

        # ─────────────────────────────────────────────────────────────
        # EVENT BINDINGS
        # ─────────────────────────────────────────────────────────────

        provider_select.change(
            fn=handlers.select_provider,
            inputs=[provider_select],
            outputs=[chat_status, message_box, image_files],
        )

        send_inputs = [message_box, image_files]
        send_outputs = [chat_status, chatbot, message_box, image_files]
        send_btn.click(fn=handlers.send_message, inputs=send_inputs, outputs=send_outputs)
        message_box.submit(fn=handlers.send_message, inputs=send_inputs, outputs=send_outputs)

        stop_btn.click(fn=handlers.handle_stop, outputs=[chat_status])
        clear_btn.click(fn=handlers.clear_chat, outputs=[chat_status, chatbot])

        generate_btn.click(
            fn=handlers.generate_image_handler,
            inputs=[image_prompt, aspect_ratio],
            outputs=[generated_image, image_status],
        )

        settings_select.change(
            fn=handlers.load_provider,
            inputs=[settings_select],
            outputs=[edit_id, edit_name, edit_base_url, edit_api_key, edit_model],
        )

        settings_outputs = [settings_status, providers_df, settings_select, provider_select]
        save_btn.click(
            fn=handlers.save_provider,
            inputs=[edit_id, edit_name, edit_base_url, edit_api_key, edit_model],
            outputs=settings_outputs,
        )
        delete_btn.click(
            fn=handlers.delete_provider,
            inputs=[edit_id],
            outputs=settings_outputs,
        )

    return app
