def format_info(depth, score, nodes, elapsed, best_move, mate_score):
    nps = int(nodes / elapsed) if elapsed > 0 else 0

    if abs(score) >= mate_score:
        score_str = f"mate {'+' if score > 0 else '-'}"
    else:
        score_str = f"cp {score}"

    best_str = str(best_move) if best_move else "-"
    return f"info depth {depth} score {score_str} nodes {nodes} nps {nps} time {int(elapsed * 1000)} best {best_str}"
