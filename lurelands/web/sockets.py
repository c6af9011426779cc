import logging
from typing import Callable, Dict, Optional

from flask import request
from flask_socketio import Namespace, emit

from ..game.services.game_service import GameService
from ..game.exceptions import GameException, InvalidActionException, PlayerNotFoundException
from ..game.managers.player_manager import DEFAULT_COLOR

log = logging.getLogger(__name__)

class GameNamespace(Namespace):
    """Maps Socket.IO client events onto GameService entry points.

    A connection is bound to a player id by the 'join' event; every other
    event acts on that player.
    """

    def __init__(self, namespace: str, game_service: GameService):
        """
        Initialize the namespace with dependency injection.

        Args:
            namespace: The Socket.IO namespace (e.g., '/game').
            game_service: The injected GameService instance.
        """
        super().__init__(namespace)
        self.game_service = game_service
        self.players_by_sid: Dict[str, str] = {}
        log.info(f"GameNamespace initialized for namespace '{namespace}'")

    # --- Helpers ---

    def _player_id(self, sid: str) -> str:
        player_id = self.players_by_sid.get(sid)
        if player_id is None:
            raise InvalidActionException("Join the world before sending game events.")
        return player_id

    def _bind(self, sid: str, player_id: str):
        """Bind sid to player_id, forgetting any older connection of the same player."""
        stale = [other for other, bound in self.players_by_sid.items() if bound == player_id and other != sid]
        for other in stale:
            del self.players_by_sid[other]
            log.info(f"Player {player_id} reconnected; dropping stale SID {other}")
        self.players_by_sid[sid] = player_id

    def _release(self, sid: str) -> Optional[str]:
        """Unbind sid. Returns the player id only when no other sid still holds it."""
        player_id = self.players_by_sid.pop(sid, None)
        if player_id is None or player_id in self.players_by_sid.values():
            return None
        return player_id

    def _send(self, event: str, payload, sid: str):
        emit(event, payload, room=sid, namespace=self.namespace)

    def _send_inventory(self, player_id: str, sid: str):
        stacks = self.game_service.get_inventory(player_id)
        self._send('inventory', {'items': [stack.model_dump(mode='json') for stack in stacks]}, sid)

    def _send_player(self, player_id: str, sid: str):
        player = self.game_service.get_player(player_id)
        self._send('player_data', player.model_dump(mode='json'), sid)

    def _send_quests(self, player_id: str, sid: str):
        board = self.game_service.get_quest_board(player_id)
        self._send('quests', board.model_dump(mode='json'), sid)

    def _handle(self, event: str, action: Callable[[str], None]):
        """Run one event for the calling sid, answering failures with 'error'."""
        sid = request.sid
        try:
            action(sid)
        except PlayerNotFoundException as e:
            log.warning(f"{event} event from unknown player (SID {sid}): {e}")
            self._send('error', {'event': event, 'message': str(e)}, sid)
        except InvalidActionException as e:
            log.warning(f"Invalid {event} attempt by SID {sid}: {e}")
            self._send('error', {'event': event, 'message': str(e)}, sid)
        except GameException as e:
            log.error(f"Game error during {event} for SID {sid}: {e}")
            self._send('error', {'event': event, 'message': str(e)}, sid)
        except (KeyError, TypeError, ValueError) as e:
            log.warning(f"Malformed {event} payload from SID {sid}: {e}")
            self._send('error', {'event': event, 'message': 'Malformed request.'}, sid)
        except Exception as e:
            log.exception(f"Unexpected error during {event} for SID {sid}: {e}")
            self._send('error', {'event': event, 'message': 'An internal server error occurred.'}, sid)

    # --- Connection / Disconnection Events ---

    def on_connect(self, auth=None):
        log.info(f"Client connected to namespace '{self.namespace}': {request.sid}")

    def on_disconnect(self, reason=None):
        """A dropped connection counts as leaving the world."""
        sid = request.sid
        log.info(f"Client disconnected from namespace '{self.namespace}': {sid}")
        player_id = self._release(sid)
        if player_id is None:
            return
        try:
            if self.game_service.leave_world(player_id):
                emit('player_left', {'id': player_id}, broadcast=True, include_self=False, namespace=self.namespace)
        except GameException as e:
            log.error(f"Error during disconnect for SID {sid}: {e}")
        except Exception as e:
            log.exception(f"Unexpected error during disconnect for SID {sid}: {e}")

    # --- Presence ---

    def on_join(self, data: dict):
        def action(sid):
            player_id = str(data['player_id'])
            name = data.get('name') or f'Player_{player_id[:4]}'
            color = int(data.get('color', DEFAULT_COLOR))
            player = self.game_service.join_world(player_id, name, color)
            self._bind(sid, player_id)

            self._send('player_data', player.model_dump(mode='json'), sid)
            self._send_inventory(player_id, sid)
            others = [
                p.model_dump(mode='json')
                for p in self.game_service.list_online_players()
                if p.id != player_id
            ]
            self._send('world_state', {'players': others}, sid)
            emit('player_joined', player.model_dump(mode='json'),
                 broadcast=True, include_self=False, namespace=self.namespace)
            log.info(f"Player {player_id} joined via SID {sid}")
        self._handle('join', action)

    def on_leave(self, data: Optional[dict] = None):
        def action(sid):
            player_id = self._release(sid)
            if player_id and self.game_service.leave_world(player_id):
                emit('player_left', {'id': player_id}, broadcast=True, include_self=False, namespace=self.namespace)
        self._handle('leave', action)

    def on_update_name(self, data: dict):
        def action(sid):
            player = self.game_service.update_player_name(self._player_id(sid), str(data['name']))
            self._send('player_data', player.model_dump(mode='json'), sid)
            emit('player_updated', player.model_dump(mode='json'),
                 broadcast=True, include_self=False, namespace=self.namespace)
        self._handle('update_name', action)

    # --- Replication ---

    def on_move(self, data: dict):
        def action(sid):
            player = self.game_service.update_position(
                self._player_id(sid),
                float(data['x']),
                float(data['y']),
                float(data.get('facing_angle', 0.0)),
            )
            if player:
                emit('player_moved', player.model_dump(mode='json'),
                     broadcast=True, include_self=False, namespace=self.namespace)
        self._handle('move', action)

    def on_cast(self, data: dict):
        def action(sid):
            player = self.game_service.start_casting(
                self._player_id(sid), float(data['target_x']), float(data['target_y'])
            )
            if player:
                emit('player_cast', {'id': player.id, 'target_x': player.cast_target_x,
                                     'target_y': player.cast_target_y},
                     broadcast=True, include_self=False, namespace=self.namespace)
        self._handle('cast', action)

    def on_reel(self, data: Optional[dict] = None):
        def action(sid):
            player = self.game_service.stop_casting(self._player_id(sid))
            if player:
                emit('player_reeled', {'id': player.id},
                     broadcast=True, include_self=False, namespace=self.namespace)
        self._handle('reel', action)

    # --- Economy ---

    def on_catch_fish(self, data: dict):
        def action(sid):
            player_id = self._player_id(sid)
            catch = self.game_service.catch_fish(
                player_id,
                str(data['item_id']),
                str(data.get('fish_type', '')),
                float(data.get('size', 0.0)),
                int(data.get('rarity', 1)),
                str(data.get('water_body_id', '')),
            )
            self._send('fish_caught', catch.model_dump(mode='json'), sid)
            self._send_inventory(player_id, sid)
        self._handle('catch_fish', action)

    def on_sell_item(self, data: dict):
        def action(sid):
            player_id = self._player_id(sid)
            player = self.game_service.sell_item(
                player_id, str(data['item_id']), int(data['rarity']), int(data.get('quantity', 1))
            )
            self._send('player_data', player.model_dump(mode='json'), sid)
            self._send_inventory(player_id, sid)
        self._handle('sell_item', action)

    def on_buy_item(self, data: dict):
        def action(sid):
            player_id = self._player_id(sid)
            player = self.game_service.buy_item(player_id, str(data['item_id']))
            self._send('player_data', player.model_dump(mode='json'), sid)
            self._send_inventory(player_id, sid)
        self._handle('buy_item', action)

    def on_equip_pole(self, data: dict):
        def action(sid):
            player = self.game_service.equip_pole(self._player_id(sid), str(data['pole_item_id']))
            self._send('player_data', player.model_dump(mode='json'), sid)
        self._handle('equip_pole', action)

    def on_unequip_pole(self, data: Optional[dict] = None):
        def action(sid):
            player = self.game_service.unequip_pole(self._player_id(sid))
            self._send('player_data', player.model_dump(mode='json'), sid)
        self._handle('unequip_pole', action)

    # --- Quests ---

    def on_accept_quest(self, data: dict):
        def action(sid):
            player_id = self._player_id(sid)
            self.game_service.accept_quest(player_id, str(data['quest_id']))
            self._send_quests(player_id, sid)
        self._handle('accept_quest', action)

    def on_complete_quest(self, data: dict):
        def action(sid):
            player_id = self._player_id(sid)
            self.game_service.complete_quest(player_id, str(data['quest_id']))
            self._send_quests(player_id, sid)
            self._send_player(player_id, sid)
            self._send_inventory(player_id, sid)
        self._handle('complete_quest', action)

    # --- NPCs ---

    def on_npc_interaction(self, data: dict):
        def action(sid):
            interaction = self.game_service.record_npc_interaction(
                self._player_id(sid), str(data['npc_id']), str(data.get('interaction_type', 'talked'))
            )
            self._send('npc_interaction', interaction.model_dump(mode='json'), sid)
        self._handle('npc_interaction', action)

    # --- Read views ---

    def on_get_inventory(self, data: Optional[dict] = None):
        self._handle('get_inventory', lambda sid: self._send_inventory(self._player_id(sid), sid))

    def on_get_quests(self, data: Optional[dict] = None):
        self._handle('get_quests', lambda sid: self._send_quests(self._player_id(sid), sid))
